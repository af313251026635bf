__version__ = "1.0.0"

from .src.device_manager import DeviceManager, gpib_resource, validate_pad
from .src.hp_3478a import HP_3478A, config_string, parse_reading
from .src.wavetek_275 import Wavetek_275, ArbProgram, sawtooth
from .src.tektronix_awg2021 import Tektronix_AWG2021
from .src.bitmap import BitmapFormatError, decode, decode_bmp, decode_packed, save_image
from .src.terminal import ColorPrinter
from .src.discovery import InstrumentDiscovery, find_all

__all__ = [
    "DeviceManager",
    "gpib_resource",
    "validate_pad",
    "HP_3478A",
    "config_string",
    "parse_reading",
    "Wavetek_275",
    "ArbProgram",
    "sawtooth",
    "Tektronix_AWG2021",
    "BitmapFormatError",
    "decode",
    "decode_bmp",
    "decode_packed",
    "save_image",
    "ColorPrinter",
    "InstrumentDiscovery",
    "find_all",
]
