import pytest
from loguru import logger

import ivsweep.util
from ivsweep.device import MCSMU, MockSMU
from ivsweep.util import TEST_LOGLEVEL


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture()
def client_log():
    ivsweep.util.start_client_log(log_to_file=True, log_level=TEST_LOGLEVEL)
    yield
    ivsweep.util.shutdown_client_log()


@pytest.fixture
def mock2():
    """Two-channel mock instrument, 1 kOhm load, no noise."""
    return MockSMU(num_channels=2, resistance=1e3)


@pytest.fixture
def smu2(mock2):
    """Opened channel model over `mock2`, with the open-time calls forgotten."""
    smu = MCSMU(mock2)
    smu.open()
    mock2.reset_calls()
    yield smu
    smu.close()


@pytest.fixture
def caplog_loguru():
    """Messages logged at ERROR or above while the test runs."""
    messages = []
    handler_id = logger.add(
        lambda msg: messages.append(msg.record["message"]), level="ERROR"
    )
    yield messages
    logger.remove(handler_id)
