"""
InfluxDB measurement schema and point records
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from influxdb_client import Point, WritePrecision

TEMPERATURE_MEASUREMENT = 'sensor.temperature.reading'
HUMIDITY_MEASUREMENT = 'sensor.humidity.reading'
DEVICE_STATE_MEASUREMENT = 'device.state.reading'

HVAC_MODES = ('off', 'heat', 'cool', 'heat-cool', 'eco')
HVAC_STATES = ('off', 'heating', 'cooling')

# Field types and tag keys per measurement
MEASUREMENT_SCHEMA = {
    TEMPERATURE_MEASUREMENT: {
        'fields': {
            'ambient': float,
            'target': float,
            'target_high': float,
            'target_low': float
        },
        'tags': ('device_id', 'room')
    },
    HUMIDITY_MEASUREMENT: {
        'fields': {
            'humidity': int
        },
        'tags': ('device_id', 'room')
    },
    DEVICE_STATE_MEASUREMENT: {
        'fields': {
            'fan': int,
            'leaf': int,
            'mode': str,
            'state': str,
            'online': int,
            'mode_off': int,
            'mode_heat': int,
            'mode_cool': int,
            'mode_heat_cool': int,
            'mode_eco': int,
            'state_off': int,
            'state_cooling': int,
            'state_heating': int
        },
        'tags': ('device_id', 'device_type', 'room')
    }
}


def one_hot_field_name(prefix: str, value: str) -> str:
    """'mode', 'heat-cool' -> 'mode_heat_cool'"""
    return f"{prefix}_{value.replace('-', '_')}"


@dataclass(frozen=True)
class Measurement:
    """One tagged record bound for InfluxDB"""
    measurement: str
    tags: Dict[str, str]
    fields: Dict[str, Any]
    timestamp: Optional[datetime] = field(default=None, compare=False)

    def to_point(self) -> Point:
        """Build an influxdb_client Point, coercing fields to the declared types

        Fields without a value are left out.
        """
        schema = MEASUREMENT_SCHEMA.get(self.measurement)
        if schema is None:
            raise ValueError(f"Unknown measurement: {self.measurement}")

        point = Point(self.measurement)
        for tag in schema['tags']:
            value = self.tags.get(tag)
            if value is not None:
                point.tag(tag, str(value))

        for name, field_type in schema['fields'].items():
            value = self.fields.get(name)
            if value is None:
                continue
            point.field(name, field_type(value))

        if self.timestamp is not None:
            point.time(self.timestamp, WritePrecision.S)
        return point
