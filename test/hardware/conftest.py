import pytest

from ivsweep.device import K2450, K2600B, MCSMU
from ivsweep.util.check_hw import check_smu_available


@pytest.fixture(scope="session")
def available_smus():
    """Which Keithley models answer on the VISA bus."""
    return {
        K2450: check_smu_available(model_filter=K2450.idn_filter),
        K2600B: check_smu_available(model_filter=K2600B.idn_filter),
    }


def _open_smu(driver, available_smus):
    if not available_smus[driver]:
        pytest.skip(f"No {driver.__name__} connected")
    smu = MCSMU(driver())  # auto-discover
    smu.open()
    return smu


@pytest.fixture
def smu2450(available_smus):
    smu = _open_smu(K2450, available_smus)
    try:
        yield smu
    finally:
        smu.turn_off_all()
        smu.close()


@pytest.fixture
def smu2600b(available_smus):
    smu = _open_smu(K2600B, available_smus)
    try:
        yield smu
    finally:
        smu.turn_off_all()
        smu.close()
