"""
Defaults shared by the command-line programs.

Values come from the environment so a bench can be set up once:

    GPIB_BOARD       board (minor) number of the GPIB controller, default 0
    PYVISA_LIBRARY   VISA backend passed to pyvisa, e.g. "@py" for pyvisa-py
"""

import os

MIN_PAD = 0
MAX_PAD = 30


def default_board():
    value = os.environ.get("GPIB_BOARD", "0")
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"GPIB_BOARD must be an integer, got '{value}'")


def default_backend():
    # pyvisa picks its own default when this is empty
    return os.environ.get("PYVISA_LIBRARY", "")
