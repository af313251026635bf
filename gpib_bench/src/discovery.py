"""
GPIB Bus Discovery Module
"""

import re
from typing import Any, Dict, List, Optional, Tuple

import pyvisa

from .config import default_backend
from .terminal import ColorPrinter
from .tektronix_awg2021 import Tektronix_AWG2021

_GPIB_RESOURCE = re.compile(r"^GPIB(\d+)::(\d+)(?:::\d+)?::INSTR$")


class InstrumentDiscovery:
    """
    Scans a GPIB board for listeners and initializes the ones it recognizes.

    Instruments older than IEEE 488.2 (the HP 3478A, the Wavetek 275) do
    not answer *IDN? and are reported without an identity.
    """

    # Mapping of model substrings to Driver Classes
    MODEL_MAP = {
        "AWG2021": Tektronix_AWG2021,
    }

    NAME_MAP = {
        "AWG2021": "awg",
    }

    SCAN_TIMEOUT = 1000  # ms

    def __init__(self, rm=None):
        self.rm = rm if rm is not None else pyvisa.ResourceManager(default_backend())
        self.found_devices: Dict[str, Any] = {}
        self.listeners: List[Tuple[str, Optional[str]]] = []

    def _identify(self, resource) -> Optional[str]:
        inst = self.rm.open_resource(resource, timeout=self.SCAN_TIMEOUT)
        try:
            inst.clear()
            idn = inst.query("*IDN?").strip()
            return idn or None
        except pyvisa.VisaIOError:
            return None
        finally:
            inst.close()

    def list_resources(self, board=None, pads=None) -> List[str]:
        """Returns GPIB resources, optionally limited to one board and a set of PADs."""
        resources = []
        for resource in self.rm.list_resources("GPIB?*::INSTR"):
            match = _GPIB_RESOURCE.match(resource)
            if not match:
                continue
            if board is not None and int(match.group(1)) != board:
                continue
            if pads is not None and int(match.group(2)) not in pads:
                continue
            resources.append(resource)
        return resources

    def scan(self, board=0, pads=range(31), verbose=True) -> Dict[str, Any]:
        """Scans GPIB resources and connects drivers for supported instruments.

        Returns:
            Dict[str, Any]: Initialized drivers keyed by friendly name
                            (e.g. 'awg', or 'awg1', 'awg2' when there are several).
        """
        self.listeners = []
        if verbose:
            ColorPrinter.header("Scanning GPIB bus")

        try:
            resources = self.list_resources(board, pads)
        except pyvisa.VisaIOError as e:
            if verbose:
                ColorPrinter.error(f"Failed to list resources: {e}")
            return {}

        if verbose:
            print(f"Found {len(resources)} GPIB listener(s)", flush=True)

        matches: List[Tuple[str, Any]] = []
        for resource in resources:
            if verbose:
                print(f"Checking {resource}...", end=" ", flush=True)
            try:
                idn = self._identify(resource)
            except pyvisa.VisaIOError as e:
                if verbose:
                    print(f"Error: {e}")
                continue

            self.listeners.append((resource, idn))
            if not idn:
                if verbose:
                    print("No response (not a 488.2 instrument?)")
                continue
            if verbose:
                print(f"Found: {idn}")

            for model_key, driver_class in self.MODEL_MAP.items():
                if model_key in idn:
                    try:
                        driver = driver_class(resource, rm=self.rm)
                        driver.connect()
                        matches.append((self.NAME_MAP[model_key], driver))
                        if verbose:
                            ColorPrinter.success(f"  -> Identified as {model_key}")
                    except pyvisa.VisaIOError as e:
                        if verbose:
                            ColorPrinter.error(f"  -> Failed to initialize driver: {e}")
                    break
            else:
                if verbose:
                    ColorPrinter.warning("  -> Unknown or unsupported device.")

        # 1 device of a type -> "awg", several -> "awg1", "awg2", ...
        totals: Dict[str, int] = {}
        for generic, _ in matches:
            totals[generic] = totals.get(generic, 0) + 1
        seen: Dict[str, int] = {}
        found: Dict[str, Any] = {}
        for generic, driver in matches:
            seen[generic] = seen.get(generic, 0) + 1
            name = generic if totals[generic] == 1 else f"{generic}{seen[generic]}"
            found[name] = driver

        self.found_devices = found
        if verbose:
            ColorPrinter.success(
                f"Discovery complete. {len(self.listeners)} listener(s), "
                f"{len(found)} supported instrument(s)."
            )
        return found

    def list_listeners(self) -> List[int]:
        """PADs of the listeners found by the last scan, identified or not."""
        return [int(_GPIB_RESOURCE.match(resource).group(2)) for resource, _ in self.listeners]

    def get(self, name: str) -> Any:
        """Get an initialized driver by its assigned name."""
        if name not in self.found_devices:
            available = list(self.found_devices.keys()) or ["(none found - run scan() first)"]
            raise ValueError(f"No instrument named '{name}'. Available: {available}")
        return self.found_devices[name]


def find_all(board=0, verbose=True) -> Dict[str, Any]:
    """Shortcut function to scan and return all supported instruments."""
    return InstrumentDiscovery().scan(board, verbose=verbose)
