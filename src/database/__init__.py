"""
Database module for InfluxDB measurement storage
"""

from .manager import DatabaseManager
from .models import (
    Measurement, MEASUREMENT_SCHEMA, TEMPERATURE_MEASUREMENT, HUMIDITY_MEASUREMENT,
    DEVICE_STATE_MEASUREMENT, HVAC_MODES, HVAC_STATES
)

__all__ = ['DatabaseManager', 'Measurement', 'MEASUREMENT_SCHEMA', 'TEMPERATURE_MEASUREMENT',
           'HUMIDITY_MEASUREMENT', 'DEVICE_STATE_MEASUREMENT', 'HVAC_MODES', 'HVAC_STATES']
