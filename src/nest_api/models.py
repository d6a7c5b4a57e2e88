"""
Nest API data structures
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Redirect:
    """307 - the API moved to another host/port"""
    host: str
    port: int


@dataclass(frozen=True)
class Reset:
    """404 - the cached endpoint is stale, revert to defaults"""


@dataclass(frozen=True)
class RateLimited:
    """429 - no data this attempt, endpoint unchanged"""


@dataclass(frozen=True)
class Data:
    """Any other status - decoded body, empty dict when the body was empty"""
    payload: Any = field(default_factory=dict)


FetchResult = Union[Redirect, Reset, RateLimited, Data]


@dataclass
class ThermostatReading:
    """One thermostat record from devices.thermostats"""
    device_id: str
    name: str
    ambient_temperature_f: Optional[float]
    target_temperature_f: Optional[float]
    target_temperature_high_f: Optional[float]
    target_temperature_low_f: Optional[float]
    humidity: Optional[int]
    hvac_mode: Optional[str]
    hvac_state: Optional[str]
    is_online: bool
    has_fan: bool
    has_leaf: bool
    structure_id: Optional[str]
    where_id: Optional[str]

    @classmethod
    def from_api(cls, device_key: str, data: Dict[str, Any]) -> "ThermostatReading":
        """Build from the API's device mapping entry; device_id falls back to the mapping key"""
        return cls(
            device_id=data.get('device_id', device_key),
            name=data.get('name', device_key),
            ambient_temperature_f=data.get('ambient_temperature_f'),
            target_temperature_f=data.get('target_temperature_f'),
            target_temperature_high_f=data.get('target_temperature_high_f'),
            target_temperature_low_f=data.get('target_temperature_low_f'),
            humidity=data.get('humidity'),
            hvac_mode=data.get('hvac_mode'),
            hvac_state=data.get('hvac_state'),
            is_online=bool(data.get('is_online', False)),
            has_fan=bool(data.get('has_fan', False)),
            has_leaf=bool(data.get('has_leaf', False)),
            structure_id=data.get('structure_id'),
            where_id=data.get('where_id'),
        )
