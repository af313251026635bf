import numpy as np
import pytest
from PIL import Image

from gpib_bench import BitmapFormatError, Tektronix_AWG2021
from gpib_bench.mock_instruments import MockAWG2021, MockResourceManager, screen_bitmap, screen_pixels


class FramedAWG2021(MockAWG2021):
    """Answers HCOPY with a 488.2 definite length block."""

    def handle(self, command):
        super().handle(command)
        if "DATA?" in command:
            body = self._pending
            length = str(len(body))
            self._pending = f"#{len(length)}{length}".encode() + body + b"\n"


class BrokenAWG2021(MockAWG2021):
    def handle(self, command):
        if "DATA?" in command:
            self._pending = b"BM" + bytes(64)


def _awg(resource):
    awg = Tektronix_AWG2021.open(0, 1, rm=MockResourceManager({"GPIB0::1::INSTR": resource}))
    awg.connect(clear=False)
    return awg


def test_capture_commands(bench, awg_resource):
    awg = Tektronix_AWG2021.open(0, 1, rm=bench)
    awg.connect(clear=False)
    data = awg.capture_screen()

    assert awg_resource.commands == ["*CLS", "HCOPY:FORM BMP;DATA?"]
    assert data == screen_bitmap()


def test_capture_uses_long_timeout(bench, awg_resource):
    awg = Tektronix_AWG2021.open(0, 1, rm=bench)
    awg.connect(clear=False)
    assert awg_resource.timeout == 10000


def test_capture_strips_block_header():
    assert _awg(FramedAWG2021()).capture_screen() == screen_bitmap()


def test_identity(bench):
    awg = Tektronix_AWG2021.open(0, 1, rm=bench)
    awg.connect()
    assert "AWG2021" in awg.get_identity()


def test_save_screen(tmp_path, bench):
    awg = Tektronix_AWG2021.open(0, 1, rm=bench)
    awg.connect(clear=False)
    received, image = awg.save_screen(tmp_path / "awg.png")

    assert received == len(screen_bitmap())
    assert image.size == (640, 480)
    with Image.open(tmp_path / "awg.png") as saved:
        assert np.array_equal(np.array(saved), screen_pixels())


def test_save_screen_bad_bitmap(tmp_path):
    with pytest.raises(BitmapFormatError):
        _awg(BrokenAWG2021()).save_screen(tmp_path / "awg.png")
    assert not (tmp_path / "awg.png").exists()


def test_received_count_includes_block_header(tmp_path):
    awg = _awg(FramedAWG2021())
    received, _image = awg.save_screen(tmp_path / "awg.png")
    body = len(screen_bitmap())
    assert received == body + len(f"#6{body}\n")


def test_capture_is_quiet_unless_verbose(bench, capsys):
    awg = Tektronix_AWG2021.open(0, 1, rm=bench)
    awg.connect(clear=False)
    awg.capture_screen()
    assert "Capturing screen" not in capsys.readouterr().out
