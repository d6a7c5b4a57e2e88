"""
Flattens a Nest API payload into InfluxDB measurements
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from database.models import (
    DEVICE_STATE_MEASUREMENT,
    HUMIDITY_MEASUREMENT,
    HVAC_MODES,
    HVAC_STATES,
    TEMPERATURE_MEASUREMENT,
    Measurement,
    one_hot_field_name,
)
from exceptions import UnexpectedPayloadShape
from .models import ThermostatReading

logger = logging.getLogger(__name__)


def extract(payload: Any, timestamp: Optional[datetime] = None, device_type: str = 'nest') -> Iterator[Measurement]:
    """
    Validate the payload and return a one-shot iterator of measurements

    Raises UnexpectedPayloadShape straight away (not on first iteration) when
    devices.thermostats is missing. All measurements share one timestamp.
    """
    devices = payload.get('devices') if isinstance(payload, dict) else None
    thermostats = devices.get('thermostats') if isinstance(devices, dict) else None
    if not isinstance(thermostats, dict):
        raise UnexpectedPayloadShape("[NestAPI] Unexpected response")

    if not thermostats:
        logger.info("[NestAPI] No thermostats found")
        return iter(())

    logger.info(f"[NestAPI] Found {len(thermostats)} thermostats")
    structures = payload.get('structures')
    if not isinstance(structures, dict):
        structures = {}
    return _iter_measurements(thermostats, structures, timestamp or datetime.now(timezone.utc), device_type)


def _iter_measurements(thermostats: Dict, structures: Dict, timestamp: datetime, device_type: str) -> Iterator[Measurement]:
    for device_key, device_data in thermostats.items():
        if not isinstance(device_data, dict):
            logger.warning(f"[NestAPI] Skipping malformed thermostat record {device_key}")
            continue

        device = ThermostatReading.from_api(device_key, device_data)
        room = _resolve_room(device, structures)
        if room is None:
            logger.warning(
                f"[NestAPI] Skipping {device.name}: structure {device.structure_id} / where {device.where_id} not found"
            )
            continue

        yield from device_measurements(device, room, timestamp, device_type)


def _resolve_room(device: ThermostatReading, structures: Dict) -> Optional[str]:
    """Look up structures[structure_id].wheres[where_id].name"""
    structure = structures.get(device.structure_id) if device.structure_id is not None else None
    if not isinstance(structure, dict):
        return None
    wheres = structure.get('wheres')
    if not isinstance(wheres, dict):
        return None
    where = wheres.get(device.where_id) if device.where_id is not None else None
    if not isinstance(where, dict) or where.get('name') is None:
        return None
    return where['name']


def device_measurements(device: ThermostatReading, room: str, timestamp: Optional[datetime] = None,
                        device_type: str = 'nest') -> Iterator[Measurement]:
    """Temperature, humidity and device-state measurements for one thermostat"""
    tags = {'device_id': device.device_id, 'room': room}

    yield Measurement(
        TEMPERATURE_MEASUREMENT,
        dict(tags),
        {
            'ambient': device.ambient_temperature_f,
            'target': device.target_temperature_f,
            'target_high': device.target_temperature_high_f,
            'target_low': device.target_temperature_low_f,
        },
        timestamp,
    )

    yield Measurement(HUMIDITY_MEASUREMENT, dict(tags), {'humidity': device.humidity}, timestamp)

    state_fields: Dict[str, Any] = {
        'fan': int(device.has_fan),
        'leaf': int(device.has_leaf),
        'online': int(device.is_online),
        'mode': device.hvac_mode,
        'state': device.hvac_state,
    }
    for mode in HVAC_MODES:
        state_fields[one_hot_field_name('mode', mode)] = int(device.hvac_mode == mode)
    for state in HVAC_STATES:
        state_fields[one_hot_field_name('state', state)] = int(device.hvac_state == state)

    yield Measurement(DEVICE_STATE_MEASUREMENT, dict(tags, device_type=device_type), state_fields, timestamp)
