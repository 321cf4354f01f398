DEFAULT_NAME = "Aerogarden"

# Remote API
API_BASE_URL = "http://ec2-54-86-39-88.compute-1.amazonaws.com:8080"
API_UPDATE_DEVICE_CONFIG = "/api/Custom/UpdateDeviceConfig"
API_QUERY_USER_DEVICE = "/api/CustomData/QueryUserDevice"
API_USER_AGENT = "HA-Aerogarden/0.1"
REQUEST_TIMEOUT = 10  # seconds

# Only one garden per device is supported
GARDEN_INDEX = 0

# Brightness levels of the three step light
BRIGHTNESS_FULL = 100
BRIGHTNESS_HALF = 50
BRIGHTNESS_OFF = 0

# Timings (seconds)
ACK_WINDOW = 30
DOUBLE_STEP_DELAY = 0.3
POLL_INTERVAL = 30

# Accessory information
MANUFACTURER = "Aerogarden"
MODEL = "Default-Model"
SERIAL_NUMBER = "Default-Serial"

# Store events
EVENT_STATE_CHANGED = "LightStateChanged"
