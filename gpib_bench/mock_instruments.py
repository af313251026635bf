"""
Mock GPIB resources for running the tools without physical hardware.

The mocks stand in for pyvisa resources, so the real drivers run on top of
them unchanged.

Usage:
    hp3478a-acquire 9 10 --mock
"""

import random
import struct

import numpy as np
import pyvisa
from pyvisa.constants import StatusCode

from .src.bitmap import SCREEN_HEIGHT, SCREEN_WIDTH


def _timeout_error():
    return pyvisa.VisaIOError(StatusCode.error_timeout)


class MockResource:
    """Records writes and plays back queued responses."""

    def __init__(self):
        self.timeout = 2000
        self.write_termination = "\n"
        self.read_termination = "\n"
        self.send_end = True
        self.commands = []
        self.cleared = 0
        self.closed = False
        self._pending = b""

    def write(self, command):
        self.commands.append(command)
        self.handle(command)
        return len(command) + len(self.write_termination or "")

    def handle(self, command):
        pass

    def respond(self):
        """Response produced when the device is addressed to talk with nothing queued."""
        raise _timeout_error()

    def read_bytes(self, count, chunk_size=None, break_on_termchar=False):
        data = self._pending or self.respond()
        self._pending = data[count:]
        return data[:count]

    def query(self, command, delay=None):
        self.write(command)
        return self.read_bytes(4096).decode("ascii")

    def clear(self):
        self.cleared += 1
        self._pending = b""

    def read_stb(self):
        return 0

    def close(self):
        self.closed = True


class MockHP3478A(MockResource):
    """Answers every read with a fresh reading near 5 V."""

    def respond(self):
        value = random.uniform(4.9980, 5.0020)
        mantissa, exponent = f"{value:+.5E}".split("E")
        return f"{mantissa}E{int(exponent):+d}\r\n".encode("ascii")

    def query(self, command, delay=None):
        self.write(command)
        raise _timeout_error()


class MockWavetek275(MockResource):
    """Accepts program strings; has nothing to say."""

    def query(self, command, delay=None):
        self.write(command)
        raise _timeout_error()


class MockAWG2021(MockResource):
    IDN = "SONY/TEK,AWG2021,0,CF:91.1CT FV:1.00"

    def handle(self, command):
        if command == "*IDN?":
            self._pending = (self.IDN + "\n").encode("ascii")
        elif "DATA?" in command:
            self._pending = screen_bitmap()


# 16-color palette close to the AWG2021 display
SCREEN_PALETTE = [
    (0, 0, 0), (0, 0, 170), (0, 170, 0), (0, 170, 170),
    (170, 0, 0), (170, 0, 170), (170, 85, 0), (170, 170, 170),
    (85, 85, 85), (85, 85, 255), (85, 255, 85), (85, 255, 255),
    (255, 85, 85), (255, 85, 255), (255, 255, 85), (255, 255, 255),
]


def encode_bmp4(pixels, palette=SCREEN_PALETTE):
    """
    Packs a (height, width) array of 4-bit indices into a bottom-up BMP.
    """
    pixels = np.asarray(pixels, dtype=np.uint8)
    height, width = pixels.shape
    stride = ((width * 4 + 31) // 32) * 4
    padded = np.zeros((height, stride * 2), dtype=np.uint8)
    padded[:, :width] = pixels
    packed = (padded[:, 0::2] << 4) | padded[:, 1::2]
    raster = packed[::-1].tobytes()

    colors = len(palette)
    offset = 14 + 40 + 4 * colors
    file_header = struct.pack("<2sIHHI", b"BM", offset + len(raster), 0, 0, offset)
    info_header = struct.pack(
        "<IiiHHIIiiII", 40, width, height, 1, 4, 0, len(raster), 2835, 2835, colors, 0
    )
    table = b"".join(struct.pack("<BBBB", b, g, r, 0) for r, g, b in palette)
    return file_header + info_header + table + raster


def screen_pixels(width=SCREEN_WIDTH, height=SCREEN_HEIGHT):
    """A graticule with a sine trace, as 4-bit palette indices."""
    pixels = np.zeros((height, width), dtype=np.uint8)
    pixels[::height // 8, :] = 8
    pixels[:, ::width // 10] = 8
    x = np.arange(width)
    y = (height / 2 - (height / 3) * np.sin(2 * np.pi * x / width)).astype(int)
    pixels[np.clip(y, 0, height - 1), x] = 14
    return pixels


def screen_bitmap():
    return encode_bmp4(screen_pixels())


class MockResourceManager:
    """Stands in for pyvisa.ResourceManager with a fixed set of devices."""

    def __init__(self, devices=None):
        self.devices = dict(devices or {})

    def open_resource(self, resource_name, **kwargs):
        if resource_name not in self.devices:
            raise pyvisa.VisaIOError(StatusCode.error_resource_not_found)
        resource = self.devices[resource_name]
        resource.closed = False
        for key, value in kwargs.items():
            setattr(resource, key, value)
        return resource

    def list_resources(self, query="?*::INSTR"):
        return tuple(self.devices)


MOCK_TYPES = {
    "hp3478a": MockHP3478A,
    "wavetek275": MockWavetek275,
    "awg2021": MockAWG2021,
}


def mock_bench(board=0, **pads):
    """
    Builds a mock resource manager.

    Args:
        board: GPIB board number used in resource names.
        pads: instrument type -> PAD, e.g. hp3478a=9. Defaults to the
            HP 3478A at 9, the Wavetek 275 at 2 and the AWG2021 at 1.
    """
    from .src.terminal import ColorPrinter

    pads = pads or {"hp3478a": 9, "wavetek275": 2, "awg2021": 1}
    devices = {}
    for kind, pad in pads.items():
        if kind not in MOCK_TYPES:
            raise ValueError(f"Unknown mock instrument '{kind}'. Must be one of: {list(MOCK_TYPES)}")
        devices[f"GPIB{board}::{pad}::INSTR"] = MOCK_TYPES[kind]()
    ColorPrinter.warning("Mock mode - no real instruments connected")
    return MockResourceManager(devices)
