import pyvisa

from .config import MIN_PAD, MAX_PAD, default_backend


def validate_pad(pad):
    """Checks a GPIB primary address and returns it as an int."""
    try:
        pad = int(pad)
    except (TypeError, ValueError):
        raise ValueError(f"PAD must be an integer, got '{pad}'.")
    if pad < MIN_PAD or pad > MAX_PAD:
        raise ValueError(f"PAD must be between {MIN_PAD} and {MAX_PAD}.")
    return pad


def gpib_resource(board, pad, sad=0):
    """Builds the VISA resource string for a device on a GPIB board."""
    pad = validate_pad(pad)
    if sad:
        return f"GPIB{board}::{pad}::{sad}::INSTR"
    return f"GPIB{board}::{pad}::INSTR"


class DeviceManager:
    """
    Base class for GPIB instrument management using PyVISA.

    Responses are read as fixed-size blocks terminated by EOI, so no read
    termination character is configured.
    """

    DEFAULT_TIMEOUT = 3000  # ms

    def __init__(self, resource_name, rm=None, timeout=None, verbose=False):
        self.rm = rm if rm is not None else pyvisa.ResourceManager(default_backend())
        self.resource_name = resource_name
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self.verbose = verbose
        self.instrument = None

    @classmethod
    def open(cls, board, pad, **kwargs):
        """Creates a driver for the device at PAD on the given board."""
        return cls(gpib_resource(board, pad), **kwargs)

    def __enter__(self):
        if self.instrument is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    def connect(self, clear=True, reset=False):
        """
        Connects to the instrument.

        Args:
            clear (bool): Send a selected device clear, then serial poll
                to empty the status byte.
            reset (bool): Send *RST once connected.
        """
        print(f"Trying to open {self.resource_name} ...", flush=True)
        try:
            self.instrument = self.rm.open_resource(self.resource_name)
            self.instrument.timeout = self.timeout
            self.instrument.write_termination = ""
            self.instrument.read_termination = None
            self.instrument.send_end = True
        except pyvisa.VisaIOError as e:
            print(f"Failed to connect to {self.resource_name}: {e}")
            raise

        try:
            if clear:
                self.instrument.clear()
                self.instrument.read_stb()
            if reset:
                self.send_command("*RST")
        except (pyvisa.VisaIOError, OSError):
            self.disconnect()
            raise
        print(f"Connected to {self.resource_name}", flush=True)

    def disconnect(self):
        """Disconnects from the instrument."""
        if self.instrument:
            self.instrument.close()
            self.instrument = None
            if self.verbose:
                print(f"Disconnected from {self.resource_name}")

    def _require_connection(self):
        if not self.instrument:
            raise ConnectionError("Instrument not connected.")

    def send_command(self, command):
        """Sends a command and checks that every byte went out."""
        self._require_connection()
        written = self.instrument.write(command)
        if written != len(command):
            raise IOError(
                f"Short write to {self.resource_name}: "
                f"{written} of {len(command)} bytes of '{command}'"
            )
        if self.verbose:
            print(f"Sent command: {command}")

    def read_bytes(self, count):
        """Reads up to count bytes, stopping early when the device asserts EOI."""
        self._require_connection()
        data = self.instrument.read_bytes(count, break_on_termchar=True)
        if not data:
            raise IOError(f"No data received from {self.resource_name}")
        return bytes(data)

    def query(self, command, count=256):
        """Sends a command and returns the response."""
        self.send_command(command)
        response = self.read_bytes(count)
        return response.decode("ascii", errors="replace").strip("\x00").strip()

    def clear_status(self):
        """Clears the instrument status byte."""
        self.send_command("*CLS")

    def reset(self):
        """Resets the instrument to a known state."""
        self.send_command("*RST")
        self.clear_status()
