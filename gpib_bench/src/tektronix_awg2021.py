# Tektronix AWG2021
"""
Driver for the Tektronix AWG2021 Arbitrary Waveform Generator.
Instrument Type: 250 MS/s arbitrary waveform generator (GPIB, 488.2)

Only the screen capture is implemented: HCOPY:FORM BMP selects a 16-color
Windows bitmap and HCOPY:DATA? returns it over the bus. A full screen is
around 150 KB, which the driver reads in a single transfer.
"""

from .bitmap import decode, save_image, strip_block_header
from .device_manager import DeviceManager


class Tektronix_AWG2021(DeviceManager):
    """
    Driver for the Tektronix AWG2021.
    """

    # the bitmap transfer is slow
    DEFAULT_TIMEOUT = 10000
    CAPTURE_SIZE = 204800

    # byte count of the last transfer, block header included
    bytes_received = 0

    def get_identity(self):
        """Returns the *IDN? response."""
        return self.query("*IDN?")

    def capture_screen(self) -> bytes:
        """
        Requests a screen capture.

        Returns:
            bytes: Bitmap data with any 488.2 block header removed.
        """
        self.clear_status()
        self.send_command("HCOPY:FORM BMP;DATA?")
        if self.verbose:
            print("Capturing screen (this may take several seconds)...", flush=True)
        data = self.read_bytes(self.CAPTURE_SIZE)
        self.bytes_received = len(data)
        return strip_block_header(data)

    def save_screen(self, path):
        """
        Captures the screen and writes it as an image file.

        Args:
            path: Output file; the image format follows its extension.

        Returns:
            tuple: (bytes received over the bus, decoded PIL image)
        """
        data = self.capture_screen()
        image = decode(data)
        save_image(image, path)
        return self.bytes_received, image
