"""Terminal utility for colored output."""

import os
import sys


class ColorPrinter:
    """
    Utility for printing colored text to the terminal using ANSI escape codes.

    Errors go to stderr so that readings printed on stdout can be piped
    into other tools. Colors are dropped when NO_COLOR is set or the stream
    is not a terminal.
    """

    # ANSI Color Codes
    HEADER = "\033[95m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    RESET = "\033[0m"
    BOLD = "\033[1m"

    @staticmethod
    def _use_color(stream):
        if os.environ.get("NO_COLOR"):
            return False
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    @staticmethod
    def _emit(color, message, stream=None):
        stream = stream or sys.stdout
        if ColorPrinter._use_color(stream):
            message = f"{color}{message}{ColorPrinter.RESET}"
        print(message, file=stream, flush=True)

    @staticmethod
    def info(message):
        """Print an informational message in blue."""
        ColorPrinter._emit(ColorPrinter.BLUE, f"[INFO] {message}")

    @staticmethod
    def success(message):
        """Print a success message in green."""
        ColorPrinter._emit(ColorPrinter.GREEN, f"[SUCCESS] {message}")

    @staticmethod
    def warning(message):
        """Print a warning message in yellow."""
        ColorPrinter._emit(ColorPrinter.YELLOW, f"[WARNING] {message}", sys.stderr)

    @staticmethod
    def error(message):
        """Print an error message in red."""
        ColorPrinter._emit(ColorPrinter.RED, f"[ERROR] {message}", sys.stderr)

    @staticmethod
    def header(message):
        """Print a bold header message in magenta."""
        ColorPrinter._emit(
            ColorPrinter.HEADER + ColorPrinter.BOLD,
            f"\n{'='*60}\n   {message.upper()}\n{'='*60}\n",
        )

    @staticmethod
    def cyan(message):
        """Print a message in cyan."""
        ColorPrinter._emit(ColorPrinter.CYAN, message)
