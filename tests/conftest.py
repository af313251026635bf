import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gpib_bench.mock_instruments import (  # noqa: E402
    MockAWG2021,
    MockHP3478A,
    MockResourceManager,
    MockWavetek275,
)


@pytest.fixture
def meter_resource():
    return MockHP3478A()


@pytest.fixture
def arb_resource():
    return MockWavetek275()


@pytest.fixture
def awg_resource():
    return MockAWG2021()


@pytest.fixture
def bench(meter_resource, arb_resource, awg_resource):
    """A mock resource manager with the three instruments at their usual PADs."""
    return MockResourceManager({
        "GPIB0::9::INSTR": meter_resource,
        "GPIB0::2::INSTR": arb_resource,
        "GPIB0::1::INSTR": awg_resource,
    })
