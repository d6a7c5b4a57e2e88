from datetime import datetime, timezone

import pytest

from database.models import (
    DEVICE_STATE_MEASUREMENT,
    HUMIDITY_MEASUREMENT,
    TEMPERATURE_MEASUREMENT,
)
from exceptions import UnexpectedPayloadShape
from nest_api import extract

MODE_FIELDS = ("mode_off", "mode_heat", "mode_cool", "mode_heat_cool", "mode_eco")
STATE_FIELDS = ("state_off", "state_cooling", "state_heating")


def by_name(measurements):
    return {m.measurement: m for m in measurements}


def test_missing_thermostats_raises_immediately():
    with pytest.raises(UnexpectedPayloadShape):
        extract({"error": "unauthorized"})
    with pytest.raises(UnexpectedPayloadShape):
        extract({"devices": {}})
    with pytest.raises(UnexpectedPayloadShape):
        extract(["not", "an", "object"])


def test_empty_thermostats_yields_nothing():
    assert list(extract({"devices": {"thermostats": {}}})) == []


def test_three_measurements_per_device(sample_payload):
    ts = datetime(2026, 1, 1, tzinfo=timezone.utc)
    measurements = list(extract(sample_payload, timestamp=ts))

    assert [m.measurement for m in measurements] == [
        TEMPERATURE_MEASUREMENT, HUMIDITY_MEASUREMENT, DEVICE_STATE_MEASUREMENT
    ]
    assert all(m.timestamp == ts for m in measurements)

    named = by_name(measurements)
    temperature = named[TEMPERATURE_MEASUREMENT]
    assert temperature.tags == {"device_id": "dev-1", "room": "Hallway"}
    assert temperature.fields == {"ambient": 68, "target": 70, "target_high": 75, "target_low": 65}
    assert named[HUMIDITY_MEASUREMENT].fields == {"humidity": 40}
    assert named[DEVICE_STATE_MEASUREMENT].tags == {"device_id": "dev-1", "room": "Hallway", "device_type": "nest"}


def test_heat_heating_one_hot_encoding(sample_payload):
    state = by_name(extract(sample_payload))[DEVICE_STATE_MEASUREMENT].fields

    assert state["mode"] == "heat"
    assert state["state"] == "heating"
    assert state["fan"] == 1
    assert state["online"] == 1
    assert state["leaf"] == 0
    assert state["mode_heat"] == 1
    assert [state[f] for f in MODE_FIELDS if f != "mode_heat"] == [0, 0, 0, 0]
    assert state["state_heating"] == 1
    assert [state[f] for f in STATE_FIELDS if f != "state_heating"] == [0, 0]


def test_heat_cool_mode_maps_to_underscored_field(sample_payload):
    device = sample_payload["devices"]["thermostats"]["dev-1"]
    device["hvac_mode"] = "heat-cool"
    device["hvac_state"] = "off"

    state = by_name(extract(sample_payload))[DEVICE_STATE_MEASUREMENT].fields
    assert state["mode_heat_cool"] == 1
    assert sum(state[f] for f in MODE_FIELDS) == 1
    assert state["state_off"] == 1
    assert sum(state[f] for f in STATE_FIELDS) == 1


def test_device_with_unknown_where_is_skipped(sample_payload):
    thermostats = sample_payload["devices"]["thermostats"]
    thermostats["dev-2"] = dict(thermostats["dev-1"], device_id="dev-2", where_id="where-2")
    thermostats["dev-3"] = dict(thermostats["dev-1"], device_id="dev-3", where_id="missing")
    thermostats["dev-4"] = dict(thermostats["dev-1"], device_id="dev-4", structure_id="missing")

    measurements = list(extract(sample_payload))

    assert len(measurements) == 6
    rooms = {(m.tags["device_id"], m.tags["room"]) for m in measurements}
    assert rooms == {("dev-1", "Hallway"), ("dev-2", "Bedroom")}


def test_extraction_is_lazy_one_shot(sample_payload):
    measurements = extract(sample_payload)
    assert len(list(measurements)) == 3
    assert list(measurements) == []


def test_non_mapping_structures_skip_devices_instead_of_failing(sample_payload):
    sample_payload["structures"] = ["struct-1"]
    assert list(extract(sample_payload)) == []
