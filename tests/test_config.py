import pytest

from hashnotes.config import get_settings, resolve_location


def test_settings_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HASHNOTES_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("HASHNOTES_DEV", "true")
    monkeypatch.setenv("HASHNOTES_REFRESH_TIMEOUT", "not-a-number")
    monkeypatch.delenv("HASHNOTES_LOG_LEVEL", raising=False)
    s = get_settings()
    assert s.db_path == tmp_path / "x.db"
    assert s.dev_mode is True
    assert s.refresh_timeout == 120.0
    assert s.log_level == "DEBUG"


def test_resolve_location_defaults_and_errors():
    assert resolve_location(None).key == "America/Los_Angeles"
    assert resolve_location("  ", "UTC").key == "UTC"
    assert resolve_location("Europe/Paris").key == "Europe/Paris"
    with pytest.raises(ValueError):
        resolve_location("Mars/Olympus")
