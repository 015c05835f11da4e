import pytest

import config


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Keep state and analytics files out of the home directory."""
    monkeypatch.setattr(config, "NAPCLOCK_STATE_PATH", str(tmp_path / "napclock_state.json"))
    monkeypatch.setattr(config, "EVENT_LOG_PATH", str(tmp_path / "napclock_events.jsonl"))
    monkeypatch.setattr(config, "EVENT_LOG_ENABLED", True)
    monkeypatch.setattr(config, "LOG_OUTPUTS", "stdout")
