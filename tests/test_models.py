from datetime import datetime, timezone

import pytest

from database.models import (
    DEVICE_STATE_MEASUREMENT,
    HUMIDITY_MEASUREMENT,
    TEMPERATURE_MEASUREMENT,
    Measurement,
    one_hot_field_name,
)


def test_one_hot_field_name():
    assert one_hot_field_name("mode", "heat-cool") == "mode_heat_cool"
    assert one_hot_field_name("state", "cooling") == "state_cooling"


def test_temperature_fields_are_written_as_floats():
    m = Measurement(
        TEMPERATURE_MEASUREMENT,
        {"device_id": "dev-1", "room": "Hallway"},
        {"ambient": 68, "target": 70, "target_high": 75, "target_low": 65},
    )
    line = m.to_point().to_line_protocol()

    assert line.startswith("sensor.temperature.reading,device_id=dev-1,room=Hallway ")
    # integral floats are written without the integer suffix
    assert "ambient=68," in line
    assert "ambient=68i" not in line
    assert line.endswith("target_low=65")


def test_integer_and_string_fields():
    humidity = Measurement(HUMIDITY_MEASUREMENT, {"device_id": "d", "room": "r"}, {"humidity": 41.0})
    assert "humidity=41i" in humidity.to_point().to_line_protocol()

    state = Measurement(
        DEVICE_STATE_MEASUREMENT,
        {"device_id": "d", "room": "r", "device_type": "nest"},
        {"fan": 1, "mode": "heat", "state": "heating", "mode_heat": 1},
    )
    line = state.to_point().to_line_protocol()
    assert "device_type=nest" in line
    assert 'mode="heat"' in line
    assert "fan=1i" in line


def test_missing_values_are_omitted():
    m = Measurement(
        TEMPERATURE_MEASUREMENT,
        {"device_id": "d", "room": "r"},
        {"ambient": 70.5, "target": None, "target_high": None, "target_low": None},
    )
    line = m.to_point().to_line_protocol()
    assert "ambient=70.5" in line
    assert "target" not in line.split(" ", 1)[1]


def test_timestamp_is_written_in_seconds():
    ts = datetime(2026, 1, 1, tzinfo=timezone.utc)
    m = Measurement(HUMIDITY_MEASUREMENT, {"device_id": "d", "room": "r"}, {"humidity": 40}, ts)
    assert m.to_point().to_line_protocol().endswith(f" {int(ts.timestamp())}")


def test_unknown_measurement_is_rejected():
    with pytest.raises(ValueError):
        Measurement("bogus", {}, {}).to_point()
