import pytest

from recycleright.config.settings import get_settings


@pytest.fixture(autouse=True)
def _offline_settings(monkeypatch):
    # Keep tests offline and independent of a developer's .env / shell.
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("MAPBOX_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("RECYCLERIGHT_BINS_PATH", raising=False)
    monkeypatch.delenv("RECYCLERIGHT_CONFIG_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
