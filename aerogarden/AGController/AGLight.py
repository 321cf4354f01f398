"""
Aerogarden grow light device actor.

All state transitions of one device run on a single asyncio task that reads
messages from a queue. Handlers are synchronous, so a read-modify-write of
the state store can never interleave with another one. Remote calls are
spawned as tracked tasks and report back through the queue.

Caller interface:

- setPower(target, ack)   optimistic on/off, ack after the ack window
- getPower(ack)           remote query reconciled with the cache
- setBrightness(value, ack) accepted and ignored
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from ..const import ACK_WINDOW, DEFAULT_NAME, DOUBLE_STEP_DELAY
from ..utils.task_manager import TaskManager
from .AGAckTimer import AckTimer
from .AGDataClasses.AGData import (ActorStats, DeviceState, QueryResult,
                                   StepPlan, ToggleCommand)
from .AGDatastore import DeviceStateStore
from .AGExceptions import AerogardenError
from .AGGateway import AerogardenGateway
from .AGReconciler import reconcile
from .AGStepper import BrightnessStepper

_LOGGER = logging.getLogger(__name__)


@dataclass
class SetPowerMessage:
    target: bool
    ack: Optional[Callable]
    future: asyncio.Future


@dataclass
class StepMessage:
    plan: StepPlan
    index: int


@dataclass
class GetPowerMessage:
    ack: Optional[Callable]
    future: asyncio.Future


@dataclass
class QueryDoneMessage:
    result: QueryResult
    ack: Optional[Callable]
    future: asyncio.Future


class AerogardenLight:
    def __init__(
        self,
        deviceId: str,
        userId: str,
        gateway: AerogardenGateway,
        store: DeviceStateStore = None,
        name: str = DEFAULT_NAME,
        ack_window: float = ACK_WINDOW,
        double_step_delay: float = DOUBLE_STEP_DELAY,
    ):
        if not deviceId:
            raise ValueError("deviceId is required")
        if not userId:
            raise ValueError("userId is required")

        self.deviceId = deviceId
        self.userId = userId
        self.name = name
        self.gateway = gateway
        self.store = store or DeviceStateStore()
        self.stepper = BrightnessStepper(double_step_delay)
        self.ackTimer = AckTimer(ack_window, name=f"{name} ack")
        self.tasks = TaskManager(f"{name} remote")
        self.stats = ActorStats()

        self._queue: asyncio.Queue = asyncio.Queue()
        self._runner: Optional[asyncio.Task] = None
        self._stopped = False
        self._handlers = {
            SetPowerMessage: self._handleSetPower,
            StepMessage: self._handleStep,
            GetPowerMessage: self._handleGetPower,
            QueryDoneMessage: self._handleQueryDone,
        }

    def __repr__(self):
        return (
            f"AerogardenLight(name='{self.name}', deviceId='{self.deviceId}', "
            f"state={self.state}, running={self.isRunning})"
        )

    @property
    def state(self) -> DeviceState:
        return self.store.read()

    @property
    def isRunning(self) -> bool:
        return self._runner is not None and not self._runner.done()

    # ---------- lifecycle ----------

    def start(self):
        if self.isRunning or self._stopped:
            return
        self._runner = asyncio.create_task(self._run(), name=f"{self.name}:actor")
        _LOGGER.info(f"{self.name}: device actor started")

    async def stop(self):
        """Stop the actor, drop the pending ack and cancel remote calls."""
        self._stopped = True
        self.ackTimer.cancel()

        if self._runner:
            self._runner.cancel()
            try:
                await self._runner
            except asyncio.CancelledError:
                pass
            self._runner = None

        while not self._queue.empty():
            message = self._queue.get_nowait()
            future = getattr(message, "future", None)
            if future and not future.done():
                future.cancel()
            self._queue.task_done()

        await self.tasks.shutdown()
        _LOGGER.info(f"{self.name}: device actor stopped")

    async def wait_idle(self):
        """Wait until no message is queued and no remote call is running."""
        while True:
            await self._queue.join()
            if not len(self.tasks):
                return
            await self.tasks.wait_all()

    async def _run(self):
        while True:
            message = await self._queue.get()
            try:
                self._handlers[type(message)](message)
            except Exception as e:
                _LOGGER.error(
                    f"{self.name}: failed to handle {type(message).__name__}: {e}",
                    exc_info=True,
                )
            finally:
                self._queue.task_done()

    def _post(self, message):
        if self._stopped:
            _LOGGER.warning(f"{self.name}: actor stopped, dropping {type(message).__name__}")
            future = getattr(message, "future", None)
            if future and not future.done():
                future.cancel()
            return
        self.start()
        self._queue.put_nowait(message)

    # ---------- caller interface ----------

    def setPower(self, target: bool, ack: Callable = None) -> asyncio.Future:
        """Request on/off. The returned future resolves when the ack fires."""
        future = asyncio.get_running_loop().create_future()
        _LOGGER.debug(f"{self.name}: Toggle {'On' if target else 'Off'}")
        self._post(SetPowerMessage(bool(target), ack, future))
        return future

    def getPower(self, ack: Callable = None) -> asyncio.Future:
        """Request the power state, preferring the remote answer."""
        future = asyncio.get_running_loop().create_future()
        self._post(GetPowerMessage(ack, future))
        return future

    def setBrightness(self, value: int, ack: Callable = None) -> asyncio.Future:
        """Brightness cannot be set remotely; acknowledged without effect."""
        _LOGGER.debug(f"{self.name}: Set Characteristic Brightness -> {value}")
        future = asyncio.get_running_loop().create_future()
        self._resolve(future, ack, None)
        return future

    # ---------- handlers ----------

    def _handleSetPower(self, message: SetPowerMessage):
        current = self.store.read()
        self.store.write(replace(current, on=message.target), source="setPower")

        plan = self.stepper.plan(message.target, current)
        if not plan.isNoOp:
            _LOGGER.debug(f"{self.name}: {plan.reason}, {plan.steps} step(s)")
            self._handleStep(StepMessage(plan, 0))

        self.ackTimer.schedule(message.ack, message.future)

    def _handleStep(self, message: StepMessage):
        previous = self.store.read()
        following = self.stepper.nextState(previous)
        self.store.write(following, source="togglePower")

        command = ToggleCommand(
            deviceId=self.deviceId,
            userId=self.userId,
            lightStat=self.stepper.lightStat(following),
        )
        self.stats.toggles += 1
        self.tasks.create_task(
            self._sendToggle(command, previous, following, message),
            name=f"toggle-{message.index + 1}/{message.plan.steps}",
        )

    def _handleGetPower(self, message: GetPowerMessage):
        cached = self.store.read().on
        self.stats.queries += 1
        self.tasks.create_task(
            self._query(message, cached),
            name="query",
        )

    def _handleQueryDone(self, message: QueryDoneMessage):
        isOn, healed = reconcile(self.store.read(), message.result)
        if healed is not None:
            self.store.write(healed, source="getPower")
        self._resolve(message.future, message.ack, None, isOn)

    # ---------- remote calls ----------

    async def _sendToggle(
        self,
        command: ToggleCommand,
        previous: DeviceState,
        following: DeviceState,
        message: StepMessage,
    ):
        _LOGGER.debug(f"{self.name}: togglePower")
        try:
            await self.gateway.updateConfig(command)
            _LOGGER.debug(
                f"{self.name}: Changing brightness from {previous.brightness} "
                f"to {following.brightness}"
            )
        except AerogardenError as e:
            self.stats.failedToggles += 1
            _LOGGER.error(f"{self.name}: setOnError {e}")
        except Exception as e:
            # remaining steps still run
            self.stats.failedToggles += 1
            _LOGGER.error(f"{self.name}: setOnError unexpected {e}", exc_info=True)

        nextIndex = message.index + 1
        if nextIndex < message.plan.steps:
            await asyncio.sleep(message.plan.delay)
            self._post(StepMessage(message.plan, nextIndex))

    async def _query(self, message: GetPowerMessage, cached: bool):
        try:
            result = await self.gateway.queryState(self.userId)
        except AerogardenError as e:
            self.stats.failedQueries += 1
            _LOGGER.error(f"{self.name}: getOn {e}")
            self._resolve(message.future, message.ack, None, cached)
            return
        except Exception as e:
            self.stats.failedQueries += 1
            _LOGGER.error(f"{self.name}: getOn unexpected error {e}", exc_info=True)
            self._resolve(message.future, message.ack, None, cached)
            return

        self._post(QueryDoneMessage(result, message.ack, message.future))

    def _resolve(self, future: asyncio.Future, ack: Optional[Callable], *args):
        """Complete a request: the future gets the last arg, ack gets all of them."""
        if not future.done():
            future.set_result(args[-1] if len(args) > 1 else None)
        if ack is None:
            return
        try:
            ack(*args)
        except Exception as e:
            _LOGGER.error(f"{self.name}: ack callback failed: {e}")
