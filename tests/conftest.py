import pytest

from mapstatic.config import ACCESS_TOKEN_ENV_VAR, Config, configure


@pytest.fixture(autouse=True)
def reset_default_config(monkeypatch: pytest.MonkeyPatch):
    """Start every test without a process-wide token or config."""
    monkeypatch.delenv(ACCESS_TOKEN_ENV_VAR, raising=False)
    configure(Config())
    yield
    configure(Config())
