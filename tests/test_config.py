from pathlib import Path

import pytest

from gpxtracker.config import DEFAULT_CREATOR, load_config
from gpxtracker.errors import ConfigError
from gpxtracker.track.session import TrackSession

ENV_VARS = (
    "GPXTRACKER_WORK_ROOT",
    "GPXTRACKER_CREATOR",
    "GPXTRACKER_MOVING_SPEED_MPS",
    "GPXTRACKER_UNITS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_no_config(tmp_path):
    cfg = load_config(repo_root=tmp_path, user_config_path=tmp_path / "missing.toml")
    assert cfg.gpx.creator == DEFAULT_CREATOR
    assert cfg.tracking.moving_speed_mps == 0.5
    assert cfg.display.units == "metric"
    assert not cfg.display.imperial
    assert cfg.paths.work_root == Path.home() / "GPS" / "_work"
    assert set(cfg.source.values()) == {"default"}


def test_user_config_overrides_repo_config(tmp_path):
    repo = _write(tmp_path / "config" / "config.toml", """
[gpx]
creator = "repo build"
[tracking]
moving_speed_mps = 1.0
""")
    user = _write(tmp_path / "user.toml", """
[gpx]
creator = "my phone"
[display]
units = "Imperial"
""")
    cfg = load_config(repo_root=tmp_path, user_config_path=user)

    assert cfg.gpx.creator == "my phone"
    assert cfg.tracking.moving_speed_mps == 1.0
    assert cfg.display.imperial
    assert cfg.source["gpx.creator"] == f"user:{user}"
    assert cfg.source["tracking.moving_speed_mps"] == f"repo:{repo}"


def test_environment_wins(tmp_path, monkeypatch):
    user = _write(tmp_path / "user.toml", '[paths]\nwork_root = "/data/gps"\n')
    monkeypatch.setenv("GPXTRACKER_WORK_ROOT", str(tmp_path / "env_work"))
    monkeypatch.setenv("GPXTRACKER_MOVING_SPEED_MPS", "0.8")

    cfg = load_config(repo_root=tmp_path, user_config_path=user)

    assert cfg.paths.work_root == tmp_path / "env_work"
    assert cfg.tracking.moving_speed_mps == 0.8
    assert cfg.source["paths.work_root"] == "env:GPXTRACKER_WORK_ROOT"


def test_malformed_toml_fails_loudly(tmp_path):
    user = _write(tmp_path / "user.toml", "[gpx\ncreator = ")
    with pytest.raises(ConfigError):
        load_config(repo_root=tmp_path, user_config_path=user)


@pytest.mark.parametrize("text", [
    '[display]\nunits = "furlongs"\n',
    '[tracking]\nmoving_speed_mps = "fast"\n',
    '[tracking]\nmoving_speed_mps = -1\n',
])
def test_bad_values_fail_loudly(tmp_path, text):
    user = _write(tmp_path / "user.toml", text)
    with pytest.raises(ConfigError):
        load_config(repo_root=tmp_path, user_config_path=user)


def test_session_from_config(tmp_path):
    user = _write(tmp_path / "user.toml", '[gpx]\ncreator = "watch"\n[tracking]\nmoving_speed_mps = 2.0\n')
    session = TrackSession.from_config(load_config(repo_root=tmp_path, user_config_path=user))
    assert session.creator == "watch"
    assert session.moving_speed_mps == 2.0
