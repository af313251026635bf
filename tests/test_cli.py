"""
End-to-end runs of the command-line programs against mock instruments.
"""

import re

import pytest
from PIL import Image

from gpib_bench import cli
from gpib_bench.mock_instruments import MockHP3478A


@pytest.fixture(autouse=True)
def no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("GPIB_BOARD", raising=False)


def test_acquire_prints_list(capsys):
    assert cli.acquire_main(["9", "3", "--mock"]) == 0
    out = capsys.readouterr().out
    assert "Trying to open GPIB0::9::INSTR" in out
    assert re.search(r"^\[ \d\.\d{6}, \d\.\d{6}, \d\.\d{6} \]$", out, re.MULTILINE)


def test_acquire_defaults_to_one_reading(capsys):
    assert cli.acquire_main(["9", "--mock"]) == 0
    assert re.search(r"^\[ \d\.\d{6} \]$", capsys.readouterr().out, re.MULTILINE)


def test_acquire_rejects_bad_pad(capsys):
    assert cli.acquire_main(["31", "--mock"]) == 1
    assert "PAD must be between 0 and 30." in capsys.readouterr().err


def test_acquire_rejects_zero_count(capsys):
    assert cli.acquire_main(["9", "0", "--mock"]) == 1
    assert "count must be at least 1" in capsys.readouterr().err


def test_acquire_rejects_non_numeric_pad(capsys):
    assert cli.acquire_main(["nine", "--mock"]) == 1
    assert "[ERROR] argument pad: invalid int value: 'nine'" in capsys.readouterr().err


def test_missing_argument_is_an_error(capsys):
    assert cli.screencap_main(["1"]) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_bad_board_in_environment(monkeypatch, capsys):
    monkeypatch.setenv("GPIB_BOARD", "zero")
    assert cli.acquire_main(["9", "--mock"]) == 1
    assert "GPIB_BOARD must be an integer" in capsys.readouterr().err


def test_acquire_warns_on_overload(monkeypatch, capsys):
    monkeypatch.setattr(MockHP3478A, "respond", lambda self: b"+9.99999E+9\r\n")
    assert cli.acquire_main(["9", "2", "--mock"]) == 0
    captured = capsys.readouterr()
    assert "[ 9999990000.000000, 9999990000.000000 ]" in captured.out
    assert "Meter reported overload" in captured.err


def test_acquire_board_from_environment(monkeypatch, capsys):
    monkeypatch.setenv("GPIB_BOARD", "1")
    assert cli.acquire_main(["9", "--mock"]) == 0
    assert "GPIB1::9::INSTR" in capsys.readouterr().out


def test_bench_reports_rate(capsys):
    assert cli.bench_main(["--mock", "--count", "5"]) == 0
    out = capsys.readouterr().out
    assert re.search(r"^\[(\d\.\d{3}, ){4}\d\.\d{3}\]$", out, re.MULTILINE)
    assert "5 readings taken in" in out
    assert "Average reading frequency was" in out


def test_config_dry_run(capsys):
    assert cli.config_main(["DCvolt", "3E-2", "--dry-run"]) == 0
    assert capsys.readouterr().out.strip() == "F1R-2"


def test_config_full_options(capsys):
    argv = ["vdc", "3", "--autozero", "off", "--digits", "3", "--display", "3",
            "--trigger", "5", "--dry-run"]
    assert cli.config_main(argv) == 0
    assert capsys.readouterr().out.strip() == "F1R0Z0N3D3T5"


def test_config_sends_to_meter(capsys):
    assert cli.config_main(["2Wohms", "3000", "--mock"]) == 0
    assert "Sent F3R3" in capsys.readouterr().out


def test_config_bad_range(capsys):
    assert cli.config_main(["DCcurr", "30", "--dry-run"]) == 1
    assert "exceeds" in capsys.readouterr().err


def test_sawtooth_dry_run(capsys):
    assert cli.sawtooth_main(["--dry-run"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "S9.9E-6A5D0B0C6XB20XH120P1Y4000K20I'LOADING WAVEFORM'",
        "K20L0",
        "K120L2000XK",
    ]


def test_sawtooth_loads_mock(capsys):
    assert cli.sawtooth_main(["--mock", "--frequency", "500"]) == 0
    assert "Loaded 500 Hz sawtooth (101 points)" in capsys.readouterr().out


def test_screencap_writes_png(tmp_path, capsys):
    path = tmp_path / "screen.png"
    assert cli.screencap_main(["1", str(path), "--mock"]) == 0
    out = capsys.readouterr().out
    assert f"150 KB received. Written to {path}" in out
    with Image.open(path) as image:
        assert image.size == (640, 480)


def test_screencap_rejects_bad_name(tmp_path, capsys):
    assert cli.screencap_main(["1", str(tmp_path / "scr"), "--mock"]) == 1
    assert "File name invalid." in capsys.readouterr().err


def test_scan_lists_listeners(capsys):
    assert cli.scan_main(["--mock"]) == 0
    out = capsys.readouterr().out
    assert "GPIB0::1::INSTR" in out and "AWG2021" in out
    assert "GPIB0::9::INSTR" in out and "(no identity)" in out
