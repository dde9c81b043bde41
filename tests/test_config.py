"""Tests for campaign_sim.config."""

from pathlib import Path

import pytest

from campaign_sim.config import DEFAULT_OPENING_GUIDE, DEFAULT_SESSION_GUIDE, load_settings
from campaign_sim.errors import ConfigurationError

ALL_VARS = [
    "STUDIO_URL", "STORE_URL", "COMPOSABLE_KEY", "PROJECT_ID",
    "PLAN_TYPE_NAME", "SESSION_TYPE_NAME", "PLANNER_INTERACTION",
    "SUMMARIZER_INTERACTION", "REQUEST_TIMEOUT", "OPENING_SESSION_GUIDE",
    "SESSION_GUIDE", "SESSION_GUIDE_OVERRIDES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also removes values written by load_dotenv
    for var in ALL_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def no_env_file(tmp_path: Path) -> Path:
    return tmp_path / "missing.env"


def test_defaults(no_env_file: Path) -> None:
    s = load_settings(no_env_file)
    assert s.studio_url == ""
    assert s.plan_type_name == "D&D Session Plan"
    assert s.session_type_name == "D&D Session Summary"
    assert s.timeout == 120.0
    assert s.opening_guide == DEFAULT_OPENING_GUIDE
    assert s.continuation_guide == DEFAULT_SESSION_GUIDE
    assert s.guide_overrides == {}


def test_reads_environment(monkeypatch: pytest.MonkeyPatch, no_env_file: Path) -> None:
    monkeypatch.setenv("STUDIO_URL", "http://studio")
    monkeypatch.setenv("STORE_URL", "http://store")
    monkeypatch.setenv("COMPOSABLE_KEY", "sk-1")
    monkeypatch.setenv("PROJECT_ID", "proj")
    monkeypatch.setenv("REQUEST_TIMEOUT", "30")
    s = load_settings(no_env_file)
    assert s.studio_url == "http://studio"
    assert s.store_url == "http://store"
    assert s.api_key == "sk-1"
    assert s.project_id == "proj"
    assert s.timeout == 30.0


def test_reads_env_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("STUDIO_URL=http://from-file\nPLAN_TYPE_NAME=Plan\n")
    s = load_settings(env_file)
    assert s.studio_url == "http://from-file"
    assert s.plan_type_name == "Plan"


def test_environment_wins_over_env_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("STUDIO_URL=http://from-file\n")
    monkeypatch.setenv("STUDIO_URL", "http://from-env")
    assert load_settings(env_file).studio_url == "http://from-env"


def test_guide_overrides_parsed(monkeypatch: pytest.MonkeyPatch, no_env_file: Path) -> None:
    monkeypatch.setenv("SESSION_GUIDE_OVERRIDES", '{"3": "store:finale"}')
    assert load_settings(no_env_file).guide_overrides == {3: "store:finale"}


def test_guide_overrides_invalid_json(monkeypatch: pytest.MonkeyPatch, no_env_file: Path) -> None:
    monkeypatch.setenv("SESSION_GUIDE_OVERRIDES", "{not json")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_settings(no_env_file)


def test_invalid_timeout(monkeypatch: pytest.MonkeyPatch, no_env_file: Path) -> None:
    monkeypatch.setenv("REQUEST_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError, match="Invalid settings"):
        load_settings(no_env_file)
