"""
Command-line programs for the GPIB bench.

Each program opens one instrument, sends one or two commands, reads the
reply and exits. All of them accept --board, --backend and --mock.
"""

import argparse
import sys
from pathlib import Path

import pyvisa

from .src.config import default_backend, default_board
from .src.device_manager import validate_pad
from .src.discovery import InstrumentDiscovery
from .src.hp_3478a import (
    HP_3478A,
    config_string,
    format_compact,
    format_readings,
    is_overload,
)
from .src.tektronix_awg2021 import Tektronix_AWG2021
from .src.terminal import ColorPrinter
from .src.wavetek_275 import DEFAULT_MESSAGE, Wavetek_275, sawtooth

# errors that end a program with a message instead of a traceback
HANDLED_ERRORS = (ValueError, OSError, pyvisa.VisaIOError)


class UsageError(ValueError):
    """Bad command line; reported like any other error."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        raise UsageError(message)


def _common_parser(description, epilog=None):
    parser = _ArgumentParser(description=description, epilog=epilog)
    parser.add_argument("--board", type=int, default=None,
                        help="GPIB board number (default: $GPIB_BOARD or 0)")
    parser.add_argument("--backend", default=None,
                        help="pyvisa library, e.g. '@py' (default: $PYVISA_LIBRARY)")
    parser.add_argument("--mock", action="store_true",
                        help="Use simulated instruments instead of the bus")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Echo every command sent")
    return parser


def _resource_manager(args, **pads):
    if args.mock:
        from .mock_instruments import mock_bench
        return mock_bench(args.board, **pads)
    return pyvisa.ResourceManager(args.backend)


def _open(driver_class, args, kind, pad, timeout=None):
    pad = validate_pad(pad)
    rm = _resource_manager(args, **{kind: pad})
    return driver_class.open(args.board, pad, rm=rm, timeout=timeout, verbose=args.verbose)


def _parse(parser, argv):
    args = parser.parse_args(argv)
    if args.board is None:
        args.board = default_board()
    if args.backend is None:
        args.backend = default_backend()
    return args


def _run(body, parser, argv):
    try:
        body(_parse(parser, argv))
    except HANDLED_ERRORS as e:
        ColorPrinter.error(str(e))
        return 1
    except KeyboardInterrupt:
        ColorPrinter.warning("Interrupted")
        return 1
    return 0


# ==========================================
# HP 3478A
# ==========================================

def acquire_main(argv=None):
    """Reads one or more values from an HP 3478A in its current mode."""
    parser = _common_parser(
        "Read values from an HP 3478A multimeter.",
        epilog="Readings are printed as a list, e.g. [ 1.000000, 1.000100 ].",
    )
    parser.add_argument("pad", type=int, help="Primary GPIB address (0-30)")
    parser.add_argument("count", type=int, nargs="?", default=1,
                        help="Number of readings (default 1)")
    parser.add_argument("--timeout", type=int, default=1000, help="I/O timeout in ms")
    parser.add_argument("--plot", action="store_true", help="Plot the readings")

    def body(args):
        if args.count < 1:
            raise ValueError("count must be at least 1")
        meter = _open(HP_3478A, args, "hp3478a", args.pad, timeout=args.timeout)
        try:
            meter.connect(clear=False)
            acquisition = meter.acquire(args.count)
        finally:
            meter.disconnect()
        print(format_readings(acquisition.values), flush=True)
        if any(is_overload(v) for v in acquisition.values):
            ColorPrinter.warning("Meter reported overload")
        if args.plot:
            acquisition.plot()

    return _run(body, parser, argv)


def bench_main(argv=None):
    """Times a burst of fast readings from an HP 3478A."""
    parser = _common_parser("Measure the HP 3478A reading rate.")
    parser.add_argument("--pad", type=int, default=HP_3478A.DEFAULT_PAD,
                        help=f"Primary GPIB address (default {HP_3478A.DEFAULT_PAD})")
    parser.add_argument("--count", type=int, default=500, help="Number of readings")
    parser.add_argument("--mode", default="F1R0Z0N3D3T5",
                        help="Configuration string sent before reading")
    parser.add_argument("--plot", action="store_true", help="Plot the readings")

    def body(args):
        if args.count < 1:
            raise ValueError("count must be at least 1")
        meter = _open(HP_3478A, args, "hp3478a", args.pad)
        try:
            meter.connect()
            meter.send_command(args.mode)
            acquisition = meter.acquire(args.count)
        finally:
            meter.disconnect()
        print(format_compact(acquisition.values))
        print(
            f"\n{len(acquisition)} readings taken in {acquisition.elapsed:1.3f} seconds."
            f"\nAverage reading frequency was {acquisition.rate:3.3f} Hz.",
            flush=True,
        )
        if args.plot:
            acquisition.plot()

    return _run(body, parser, argv)


def _on_off(value):
    value = value.lower()
    if value in ("on", "1", "true", "yes"):
        return True
    if value in ("off", "0", "false", "no"):
        return False
    raise argparse.ArgumentTypeError(f"expected on or off, got '{value}'")


def config_main(argv=None):
    """Resets an HP 3478A and sets its function and range."""
    parser = _common_parser(
        "Configure an HP 3478A multimeter.",
        epilog="Functions: DCvolt ACvolt 2Wohms 4Wohms DCcurr ACcurr ENohms "
               "(or vdc vac res fres idc iac xohm). Range is the full scale "
               "in V, A or ohms, or A for autorange.",
    )
    parser.add_argument("function", help="Measurement function")
    parser.add_argument("range", nargs="?", default=None, help="Full scale, e.g. 3E-2, or A")
    parser.add_argument("--pad", type=int, default=HP_3478A.DEFAULT_PAD,
                        help=f"Primary GPIB address (default {HP_3478A.DEFAULT_PAD})")
    parser.add_argument("--autozero", type=_on_off, default=None, help="on or off")
    parser.add_argument("--digits", type=int, choices=(3, 4, 5), default=None)
    parser.add_argument("--display", type=int, choices=(1, 2, 3), default=None)
    parser.add_argument("--trigger", type=int, choices=(1, 2, 3, 4, 5), default=None)
    parser.add_argument("--dry-run", action="store_true",
                        help="Print the command without sending it")

    def body(args):
        cmd = config_string(args.function, args.range, args.autozero,
                            args.digits, args.display, args.trigger)
        if args.dry_run:
            print(cmd)
            return
        meter = _open(HP_3478A, args, "hp3478a", args.pad)
        try:
            meter.connect(clear=True, reset=True)
            meter.send_command(cmd)
        finally:
            meter.disconnect()
        ColorPrinter.success(f"Sent {cmd}")

    return _run(body, parser, argv)


# ==========================================
# Wavetek 275
# ==========================================

def sawtooth_main(argv=None):
    """Loads a sawtooth into a Wavetek 275."""
    parser = _common_parser("Load a sawtooth waveform into a Wavetek 275.")
    parser.add_argument("--pad", type=int, default=Wavetek_275.DEFAULT_PAD,
                        help=f"Primary GPIB address (default {Wavetek_275.DEFAULT_PAD})")
    parser.add_argument("--frequency", type=float, default=1000.0, help="Hz (default 1000)")
    parser.add_argument("--amplitude", type=float, default=5.0, help="Volts (default 5)")
    parser.add_argument("--start", type=int, default=20, help="First waveform address")
    parser.add_argument("--stop", type=int, default=120, help="Last waveform address")
    parser.add_argument("--low", type=int, default=0, help="Level at the first address")
    parser.add_argument("--high", type=int, default=2000, help="Level at the last address")
    parser.add_argument("--message", default=DEFAULT_MESSAGE,
                        help="Front panel message while loading")
    parser.add_argument("--plot", action="store_true", help="Preview the waveform")
    parser.add_argument("--dry-run", action="store_true",
                        help="Print the commands without sending them")

    def body(args):
        program = sawtooth(args.frequency, start=args.start, stop=args.stop,
                           low=args.low, high=args.high, amplitude=args.amplitude)
        if args.plot:
            program.plot()
        if args.dry_run:
            for cmd in program.commands(args.message):
                print(cmd)
            return
        generator = _open(Wavetek_275, args, "wavetek275", args.pad)
        try:
            generator.connect(clear=True, reset=True)
            generator.load(program, args.message)
        finally:
            generator.disconnect()
        ColorPrinter.success(
            f"Loaded {program.frequency:g} Hz sawtooth ({program.length} points)"
        )

    return _run(body, parser, argv)


# ==========================================
# Tektronix AWG2021
# ==========================================

def screencap_main(argv=None):
    """Saves an AWG2021 screen capture as PNG (or any format by extension)."""
    parser = _common_parser(
        "Capture the screen of a Tektronix AWG2021.",
        epilog="The image format follows the file extension; .png is smallest.",
    )
    parser.add_argument("pad", type=int, help="Primary GPIB address (0-30)")
    parser.add_argument("path", help="Output image path, e.g. screen.png")

    def body(args):
        path = Path(args.path)
        if not path.stem or not path.suffix:
            raise ValueError("File name invalid.")
        awg = _open(Tektronix_AWG2021, args, "awg2021", args.pad)
        try:
            awg.connect(clear=False)
            print("Connection succeeded.", end="\n" if args.verbose else " ", flush=True)
            received, _image = awg.save_screen(path)
        finally:
            awg.disconnect()
        print(f"{received // 1024} KB received. Written to {path}", flush=True)

    return _run(body, parser, argv)


# ==========================================
# Bus scan
# ==========================================

def scan_main(argv=None):
    """Lists the listeners on a GPIB board."""
    parser = _common_parser("List instruments on the GPIB bus.")

    def body(args):
        rm = _resource_manager(args)
        discovery = InstrumentDiscovery(rm=rm)
        found = discovery.scan(board=args.board, verbose=args.verbose)
        for resource, idn in discovery.listeners:
            print(f"{resource.ljust(20)} {idn or '(no identity)'}")
        for driver in found.values():
            driver.disconnect()

    return _run(body, parser, argv)

