"""Aerogarden light control core."""
