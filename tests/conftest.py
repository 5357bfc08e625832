import pytest

from helpers import Terminal, make_terminal
from taskconsole import reset_router


@pytest.fixture(autouse=True)
def isolated_router(monkeypatch, tmp_path):
    """Give every test a pristine router and a configuration-free environment."""
    for key in (
        "TASKCONSOLE_ANSI",
        "TASKCONSOLE_RECORD_OUTPUT",
        "TASKCONSOLE_REAL_CONSOLE_OUTPUT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TASKCONSOLE_WATCH_RESIZE", "false")
    monkeypatch.setattr("taskconsole.config.CONFIG_FILE", tmp_path / "config.json")

    reset_router()
    yield
    reset_router()


@pytest.fixture
def terminal() -> Terminal:
    return make_terminal()
