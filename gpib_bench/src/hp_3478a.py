# HP 3478A
"""
Driver for the HP 3478A Digital Multimeter.
Instrument Type: 5.5 digit bench multimeter (pre-SCPI, HP-IB only)

The meter does not speak SCPI. It is programmed with short concatenated
codes, each a letter followed by a digit:

    F<n>  function      F1 DCV, F2 ACV, F3 2-wire ohms, F4 4-wire ohms,
                        F5 DCA, F6 ACA, F7 extended ohms
    R<n>  range         full scale = 3 * 10^n, RA for autorange
    Z<n>  autozero      Z0 off, Z1 on
    N<n>  digits        N3, N4, N5
    D<n>  display       D1 normal, D2 text, D3 text with display updates off
    T<n>  trigger       T1 internal, T2 external, T3 single, T4 hold, T5 fast

Example: "F1R0Z0N3D3T5" selects DC volts, 3 V range, autozero off,
3.5 digits, blank display and fast trigger.
"""

import math
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .device_manager import DeviceManager

# function name -> (F code, min full scale, max full scale)
FUNCTIONS = {
    "DCvolt": (1, 0.03, 300.0),
    "ACvolt": (2, 0.3, 300.0),
    "2Wohms": (3, 30.0, 30e6),
    "4Wohms": (4, 30.0, 30e6),
    "DCcurr": (5, 0.3, 3.0),
    "ACcurr": (6, 0.3, 3.0),
    "ENohms": (7, None, None),
}

FUNCTION_ALIASES = {
    "vdc": "DCvolt",
    "vac": "ACvolt",
    "res": "2Wohms",
    "fres": "4Wohms",
    "idc": "DCcurr",
    "iac": "ACcurr",
    "xohm": "ENohms",
}

VALID_DIGITS = {3, 4, 5}
VALID_DISPLAY = {1, 2, 3}
VALID_TRIGGER = {1, 2, 3, 4, 5}

OVERLOAD = 9.99999e9

_DISPLAY_WIDTH = 12


def resolve_function(function):
    """Returns the canonical function name for a name or alias."""
    for name in FUNCTIONS:
        if name.lower() == str(function).lower():
            return name
    alias = FUNCTION_ALIASES.get(str(function).lower())
    if alias:
        return alias
    valid = list(FUNCTIONS) + list(FUNCTION_ALIASES)
    raise ValueError(f"Unknown function '{function}'. Must be one of: {valid}")


def range_code(function, range_val):
    """
    Returns the R code for a function and requested full scale.

    A request below the lowest range uses the lowest range; one between two
    ranges uses the smallest range that still covers it. Above the highest
    range is an error.
    """
    function = resolve_function(function)
    if isinstance(range_val, str) and range_val.upper() in ("A", "AUTO"):
        return "RA"

    _, low, high = FUNCTIONS[function]
    if low is None:
        raise ValueError(f"{function} only supports autorange")

    try:
        range_val = float(range_val)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid range '{range_val}' for {function}")
    if not math.isfinite(range_val):
        raise ValueError(f"Invalid range '{range_val}' for {function}")
    if range_val <= 0:
        raise ValueError(f"Range must be positive, got {range_val}")
    if range_val > high * (1 + 1e-9):
        raise ValueError(f"Range {range_val:g} exceeds {function} maximum of {high:g}")

    first = round(math.log10(low / 3))
    last = round(math.log10(high / 3))
    for exponent in range(first, last + 1):
        if range_val <= 3 * 10.0**exponent * (1 + 1e-9):
            return f"R{exponent}"
    return f"R{last}"


def config_string(function, range_val=None, autozero=None, digits=None,
                  display=None, trigger=None):
    """
    Builds a configuration command for the meter.

    Codes are emitted in the order F R Z N D T; parameters left as None
    are omitted so the meter keeps its current setting.

    Args:
        function (str): One of FUNCTIONS or FUNCTION_ALIASES (any case).
        range_val (float|str): Full scale in base units, or "A"/"AUTO".
        autozero (bool): Autozero on or off.
        digits (int): 3, 4 or 5.
        display (int): 1, 2 or 3.
        trigger (int): 1 to 5.

    Returns:
        str: e.g. "F1R0Z0N3D3T5".
    """
    function = resolve_function(function)
    cmd = f"F{FUNCTIONS[function][0]}"

    if range_val is not None:
        cmd += range_code(function, range_val)
    if autozero is not None:
        cmd += "Z1" if autozero else "Z0"
    if digits is not None:
        if digits not in VALID_DIGITS:
            raise ValueError(f"Invalid digits. Must be one of: {sorted(VALID_DIGITS)}")
        cmd += f"N{digits}"
    if display is not None:
        if display not in VALID_DISPLAY:
            raise ValueError(f"Invalid display mode. Must be one of: {sorted(VALID_DISPLAY)}")
        cmd += f"D{display}"
    if trigger is not None:
        if trigger not in VALID_TRIGGER:
            raise ValueError(f"Invalid trigger. Must be one of: {sorted(VALID_TRIGGER)}")
        cmd += f"T{trigger}"
    return cmd


def parse_reading(raw):
    """
    Converts a raw reading such as b"+1.23456E+0\\r\\n" to a float.

    Raises:
        ValueError: If the response holds no number.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("ascii", errors="replace")
    text = raw.replace("\x00", "").strip()
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Failed to convert DMM response '{text}' to float")


def is_overload(value):
    """True when the meter reported an overload (+9.99999E+9)."""
    return abs(value) >= OVERLOAD


def format_readings(values):
    """Formats readings as "[ 1.000000, 2.000000 ]"."""
    return "[ " + ", ".join(f"{v:f}" for v in values) + " ]"


def format_compact(values):
    """Formats readings as "[1.000, 2.000]"."""
    return "[" + ", ".join(f"{v:1.3f}" for v in values) + "]"


@dataclass
class Acquisition:
    """
    A run of readings taken back to back.

    Attributes:
        values: Readings in base units (V, A or ohms)
        elapsed: Wall time spent reading, in seconds
    """
    values: List[float] = field(default_factory=list)
    elapsed: float = 0.0

    def __len__(self) -> int:
        return len(self.values)

    @property
    def rate(self) -> float:
        """Average readings per second."""
        if self.elapsed <= 0:
            return 0.0
        return len(self.values) / self.elapsed

    def plot(self, title: Optional[str] = None):
        """Plot readings against sample number using matplotlib."""
        try:
            import matplotlib.pyplot as plt

            plt.figure(figsize=(12, 6))
            plt.plot(range(len(self.values)), self.values, marker=".")
            plt.xlabel("Reading")
            plt.ylabel("Value")
            plt.title(title or f"HP 3478A, {len(self.values)} readings")
            plt.grid(True, alpha=0.3)
            plt.tight_layout()
            plt.show()
        except ImportError:
            print("matplotlib not installed. Install with: pip install matplotlib")


class HP_3478A(DeviceManager):
    """
    Driver for the HP 3478A multimeter.

    The meter sends a reading every time it is addressed to talk, so a
    read without a preceding command returns the next measurement.
    """

    DEFAULT_PAD = 9
    DEFAULT_TIMEOUT = 3000
    READ_SIZE = 15

    def configure(self, function, range_val=None, autozero=None, digits=None,
                  display=None, trigger=None):
        """Sends a configuration built by config_string() and returns it."""
        cmd = config_string(function, range_val, autozero, digits, display, trigger)
        self.send_command(cmd)
        return cmd

    def display_text(self, text: str):
        """Shows up to 12 characters on the front panel."""
        text = str(text).upper()[:_DISPLAY_WIDTH]
        self.send_command(f"D2{text}")

    def display_normal(self):
        """Returns the front panel to showing readings."""
        self.send_command("D1")

    def read_value(self) -> float:
        """Reads one measurement."""
        return parse_reading(self.read_bytes(self.READ_SIZE))

    def read_values(self, count: int) -> List[float]:
        """Reads count measurements in a row."""
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        return [self.read_value() for _ in range(count)]

    def acquire(self, count: int) -> Acquisition:
        """Reads count measurements and times how long they took."""
        start = time.perf_counter()
        values = self.read_values(count)
        return Acquisition(values=values, elapsed=time.perf_counter() - start)
