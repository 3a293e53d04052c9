"""Tests for settings loading."""

from lingo_engine.config import Settings


def test_yaml_defaults():
    settings = Settings()
    assert settings.default_language == "hindi"
    assert settings.default_skill_id == "basics_1"
    assert settings.max_recent_mistakes == 10
    assert settings.port == 8000


def test_env_overrides_yaml(monkeypatch):
    monkeypatch.setenv("DEFAULT_LANGUAGE", "tamil")
    monkeypatch.setenv("PORT", "9000")
    settings = Settings()
    assert settings.default_language == "tamil"
    assert settings.port == 9000


def test_data_dirs_created(tmp_path):
    settings = Settings(data_dir=tmp_path / "progress")
    assert settings.profiles_dir == tmp_path / "progress" / "profiles"
    assert settings.languages_dir.is_dir()
