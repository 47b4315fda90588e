"""Discover Cymru: geocoding backend for the Welsh rugby club directory map."""

__version__ = "0.1.0"
