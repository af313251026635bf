# Wavetek 275
"""
Driver for the Wavetek 275 Arbitrary/Function Generator.
Instrument Type: 12 MHz programmable arbitrary waveform generator

The 275 is programmed with terse single-letter codes followed by values.
The ones used for arbitrary waveform loading are:

    S<t>      sample interval in seconds
    A<v>      amplitude in volts
    XB<n>     first waveform address
    XH<n>     last waveform address
    Y<n>      full scale level count
    K<n>      point at waveform address n
    L<n>      set the level at the current address
    XK        interpolate linearly from the previous point
    I'<text>' show a message on the front panel

Any other setup codes (D, B, C, P by default) are passed through as given.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .device_manager import DeviceManager

DEFAULT_START = 20
DEFAULT_STOP = 120
DEFAULT_FULL_SCALE = 4000
DEFAULT_MESSAGE = "LOADING WAVEFORM"

# pass-through codes emitted between amplitude and the address window
DEFAULT_CODES = {"D": 0, "B": 0, "C": 6}
DEFAULT_PROGRAM_MODE = 1


def format_number(value):
    """
    Formats a number with three significant digits and a bare exponent.

    >>> format_number(9.90099e-6)
    '9.9E-6'
    >>> format_number(5.0)
    '5'
    """
    mantissa, _, exponent = f"{value:.3G}".partition("E")
    if exponent:
        return f"{mantissa}E{int(exponent)}"
    return mantissa


@dataclass
class ArbProgram:
    """
    An arbitrary waveform described by breakpoints.

    Attributes:
        sample_period: Time per waveform address in seconds
        points: (address, level) pairs, addresses strictly increasing
        start: First address of the waveform window
        stop: Last address of the waveform window
        amplitude: Output amplitude in volts
        full_scale: Level count corresponding to full scale
    """
    sample_period: float
    points: List[Tuple[int, int]]
    start: int = DEFAULT_START
    stop: int = DEFAULT_STOP
    amplitude: float = 5.0
    full_scale: int = DEFAULT_FULL_SCALE
    codes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CODES))

    def __post_init__(self):
        if self.sample_period <= 0:
            raise ValueError(f"sample_period must be positive, got {self.sample_period}")
        if self.stop <= self.start:
            raise ValueError(f"stop ({self.stop}) must be greater than start ({self.start})")
        _check_points(self.points, self.start, self.stop)

    @property
    def length(self) -> int:
        """Number of addresses in the waveform window."""
        return self.stop - self.start + 1

    @property
    def frequency(self) -> float:
        """Repetition rate of the whole window in Hz."""
        return 1.0 / (self.sample_period * self.length)

    def setup_command(self, message: Optional[str] = DEFAULT_MESSAGE) -> str:
        return setup_string(
            self.sample_period,
            amplitude=self.amplitude,
            start=self.start,
            stop=self.stop,
            full_scale=self.full_scale,
            message=message,
            codes=self.codes,
        )

    def commands(self, message: Optional[str] = DEFAULT_MESSAGE) -> List[str]:
        """All commands needed to load this waveform, in order."""
        return [self.setup_command(message)] + breakpoint_commands(self.points)

    def samples(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Levels at every address between the first and last breakpoint.

        Returns:
            (addresses, levels) as numpy arrays
        """
        addresses = np.arange(self.points[0][0], self.points[-1][0] + 1)
        xp = np.array([p[0] for p in self.points])
        fp = np.array([p[1] for p in self.points], dtype=float)
        return addresses, np.interp(addresses, xp, fp)

    def plot(self, title: Optional[str] = None):
        """Preview the waveform using matplotlib."""
        try:
            import matplotlib.pyplot as plt

            addresses, levels = self.samples()
            t = (addresses - self.start) * self.sample_period
            volts = levels / self.full_scale * self.amplitude
            plt.figure(figsize=(12, 6))
            plt.plot(t * 1e3, volts)
            plt.xlabel("Time (ms)")
            plt.ylabel("Voltage (V)")
            plt.title(title or f"Arbitrary waveform, {self.frequency:g} Hz")
            plt.grid(True, alpha=0.3)
            plt.tight_layout()
            plt.show()
        except ImportError:
            print("matplotlib not installed. Install with: pip install matplotlib")


def _check_points(points, start, stop):
    if not points:
        raise ValueError("At least one breakpoint is required")
    previous = None
    for address, _level in points:
        if address < start or address > stop:
            raise ValueError(f"Address {address} is outside the window {start}..{stop}")
        if previous is not None and address <= previous:
            raise ValueError("Breakpoint addresses must be strictly increasing")
        previous = address


def setup_string(sample_period, amplitude=5.0, start=DEFAULT_START, stop=DEFAULT_STOP,
                 full_scale=DEFAULT_FULL_SCALE, message=None, codes=None,
                 program_mode=DEFAULT_PROGRAM_MODE):
    """
    Builds the command that prepares the generator for a waveform load.

    With the defaults and a 1 kHz sample period this yields
    "S9.9E-6A5D0B0C6XB20XH120P1Y4000K20I'LOADING WAVEFORM'".
    """
    codes = DEFAULT_CODES if codes is None else codes
    cmd = f"S{format_number(sample_period)}A{format_number(amplitude)}"
    cmd += "".join(f"{letter}{value}" for letter, value in codes.items())
    cmd += f"XB{start}XH{stop}P{program_mode}Y{full_scale}K{start}"
    if message:
        if "'" in message:
            raise ValueError("Message must not contain single quotes")
        cmd += f"I'{message.upper()}'"
    return cmd


def breakpoint_commands(points):
    """
    Converts (address, level) pairs into K/L commands.

    The first point is set directly; each later point is reached by linear
    interpolation from the one before it.
    """
    commands = []
    previous = None
    for address, level in points:
        if previous is not None and address <= previous:
            raise ValueError("Breakpoint addresses must be strictly increasing")
        cmd = f"K{address}L{level}"
        if previous is not None:
            cmd += "XK"
        commands.append(cmd)
        previous = address
    return commands


def sawtooth(frequency, start=DEFAULT_START, stop=DEFAULT_STOP, low=0, high=2000,
             amplitude=5.0):
    """Builds a rising ramp that fills the address window once per period."""
    if frequency <= 0:
        raise ValueError(f"frequency must be positive, got {frequency}")
    length = stop - start + 1
    return ArbProgram(
        sample_period=1.0 / (frequency * length),
        points=[(start, low), (stop, high)],
        start=start,
        stop=stop,
        amplitude=amplitude,
    )


class Wavetek_275(DeviceManager):
    """
    Driver for the Wavetek 275 arbitrary waveform generator.
    """

    DEFAULT_PAD = 2
    DEFAULT_TIMEOUT = 3000

    def load(self, program: ArbProgram, message: Optional[str] = DEFAULT_MESSAGE):
        """
        Sends a waveform to the generator.

        Returns:
            list: The commands that were sent.
        """
        commands = program.commands(message)
        for cmd in commands:
            self.send_command(cmd)
        return commands
