import pytest

from gpib_bench import HP_3478A, config_string, parse_reading
from gpib_bench.src.hp_3478a import (
    Acquisition,
    format_compact,
    format_readings,
    is_overload,
    range_code,
)


# ==========================================
# COMMAND STRINGS
# ==========================================

def test_fast_dc_volts_string():
    assert config_string("DCvolt", 3, autozero=False, digits=3, display=3, trigger=5) == "F1R0Z0N3D3T5"


def test_function_only():
    assert config_string("ACcurr") == "F6"


def test_dc_30_millivolt_range():
    assert config_string("DCvolt", 3e-2) == "F1R-2"


@pytest.mark.parametrize("function, range_val, expected", [
    ("DCvolt", 300, "R2"),
    ("ACvolt", 0.3, "R-1"),
    ("2Wohms", 30e6, "R7"),
    ("4Wohms", 3000, "R3"),
    ("DCcurr", 3, "R0"),
    ("ACcurr", 0.3, "R-1"),
])
def test_exact_ranges(function, range_val, expected):
    assert range_code(function, range_val) == expected


def test_range_between_steps_rounds_up():
    assert range_code("DCvolt", 1.0) == "R0"
    assert range_code("2Wohms", 1000) == "R3"


def test_range_below_minimum_clamps():
    assert range_code("DCvolt", 0.001) == "R-2"
    assert range_code("2Wohms", 1) == "R1"


def test_range_above_maximum_raises():
    with pytest.raises(ValueError, match="exceeds"):
        range_code("DCcurr", 10)


def test_autorange():
    assert config_string("vdc", "A") == "F1RA"
    assert config_string("ENohms", "auto") == "F7RA"


@pytest.mark.parametrize("range_val", ["nan", float("inf"), "-inf"])
def test_range_must_be_finite(range_val):
    with pytest.raises(ValueError, match="Invalid range"):
        config_string("DCvolt", range_val)


def test_extended_ohms_has_no_fixed_range():
    with pytest.raises(ValueError, match="autorange"):
        config_string("ENohms", 3e7)


def test_aliases_and_case():
    assert config_string("fres") == "F4"
    assert config_string("dcvolt") == "F1"


def test_unknown_function():
    with pytest.raises(ValueError, match="Unknown function"):
        config_string("OHMS")


@pytest.mark.parametrize("kwargs", [
    {"digits": 6},
    {"display": 4},
    {"trigger": 0},
])
def test_invalid_options(kwargs):
    with pytest.raises(ValueError):
        config_string("DCvolt", **kwargs)


def test_autozero_on():
    assert config_string("DCvolt", autozero=True) == "F1Z1"


# ==========================================
# READINGS
# ==========================================

def test_parse_reading_bytes():
    assert parse_reading(b"+1.23456E+0\r\n") == pytest.approx(1.23456)


def test_parse_reading_ignores_padding():
    assert parse_reading(b"-4.5000E-3\r\n\x00\x00") == pytest.approx(-4.5e-3)


def test_parse_reading_garbage():
    with pytest.raises(ValueError, match="Failed to convert"):
        parse_reading(b"\r\n")


def test_overload():
    assert is_overload(parse_reading(b"+9.99999E+9\r\n"))
    assert not is_overload(12.5)


def test_formatting():
    assert format_readings([1, 2.5]) == "[ 1.000000, 2.500000 ]"
    assert format_compact([1, 2.5]) == "[1.000, 2.500]"


def test_acquisition_rate():
    acquisition = Acquisition(values=[1.0] * 10, elapsed=0.5)
    assert len(acquisition) == 10
    assert acquisition.rate == pytest.approx(20.0)
    assert Acquisition().rate == 0.0


# ==========================================
# DRIVER
# ==========================================

@pytest.fixture
def meter(bench):
    meter = HP_3478A.open(0, 9, rm=bench)
    meter.connect()
    yield meter
    meter.disconnect()


def test_configure_sends_string(meter, meter_resource):
    cmd = meter.configure("DCvolt", 3, autozero=False, digits=3, display=3, trigger=5)
    assert cmd == "F1R0Z0N3D3T5"
    assert meter_resource.commands == ["F1R0Z0N3D3T5"]


def test_read_value(meter):
    assert 4.99 < meter.read_value() < 5.01


def test_read_values_count(meter):
    values = meter.read_values(5)
    assert len(values) == 5
    assert all(isinstance(v, float) for v in values)


def test_read_values_rejects_zero(meter):
    with pytest.raises(ValueError):
        meter.read_values(0)


def test_acquire_times_readings(meter):
    acquisition = meter.acquire(3)
    assert len(acquisition) == 3
    assert acquisition.elapsed >= 0


def test_display_text_truncates(meter, meter_resource):
    meter.display_text("hello from the bench")
    meter.display_normal()
    assert meter_resource.commands == ["D2HELLO FROM T", "D1"]
