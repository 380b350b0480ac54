import pytest

from main import app
from routers import rate_limit


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture
def scratch_dir(tmp_path, monkeypatch):
    """Point every scratch-directory default at a per-test folder."""
    directory = tmp_path / "scratch"
    directory.mkdir()
    monkeypatch.setattr("config.settings.SCRATCH_DIR", str(directory))
    return directory
