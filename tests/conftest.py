from pathlib import Path

import pytest
from structlog.testing import capture_logs

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def raw_config() -> bytes:
    """Raw bytes of the sample Prometheus dashboard configuration."""
    return (FIXTURES / "metrics_config.json").read_bytes()


@pytest.fixture
def config_path() -> Path:
    return FIXTURES / "metrics_config.json"


@pytest.fixture
def log_capture():
    """Capture structlog events emitted while the test runs."""
    with capture_logs() as captured:
        yield captured
