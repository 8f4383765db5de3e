import json

from core.match.models import MatchFormat
from runtime import version
from scripts.validate_config import main as validate_main
from shared.config.automation import (
    DEFAULT_SCENES,
    load_automation_config,
    validate_automation_config,
)
from shared.logging.logger import get_logger


def test_defaults_when_empty():
    config = load_automation_config({}, use_env=False)

    assert config.obs.url == "ws://127.0.0.1:4455"
    assert config.obs.strict_mode is False
    assert config.scenes == DEFAULT_SCENES
    assert config.defaults.score_min == 0
    assert config.defaults.score_max == 4
    assert config.queue == []


def test_bundled_config_loads():
    config = load_automation_config(use_env=False)

    assert config.scene("in_match") == "In-Game Match"
    assert config.profile("p1_default").name == "PlayerOne"
    assert config.metadata.get_country("chl").display_name == "Chile"
    assert len(config.queue) == 2


def test_sections_parse():
    raw = {
        "obs": {"url": "ws://obs:4455", "default_timeout": 5, "strict_mode": True},
        "scenes": {"break": "Intermission"},
        "overlay": {"p1_name": "Left Name", "bogus": "x"},
        "defaults": {"round_label": "Top 8", "format": "bo5", "score_min": 0, "score_max": 3},
        "queue": [{"round_label": "GF", "format": "FT3", "player1": {"name": "A", "country": "arg"}}],
    }

    config = load_automation_config(raw, use_env=False)

    assert config.obs.url == "ws://obs:4455"
    assert config.obs.default_timeout == 5.0
    assert config.obs.strict_mode is True
    assert config.scene("break") == "Intermission"
    assert config.scene("desk") == "Commentary"
    assert config.overlay.p1_name == "Left Name"
    assert config.defaults.format is MatchFormat.BO5
    assert config.build_initial_match().round_label == "Top 8"
    assert config.queue[0].format is MatchFormat.FT3
    assert config.queue[0].player1.country == "ARG"


def test_bad_values_fall_back_to_defaults():
    raw = {
        "obs": {"connect_timeout": "soon", "strict_mode": "yes"},
        "defaults": {"format": "FT99", "score_min": 3, "score_max": 1},
    }

    config = load_automation_config(raw, use_env=False)

    assert config.obs.connect_timeout == 20.0
    assert config.obs.strict_mode is False
    assert config.defaults.format is MatchFormat.FT2
    assert config.defaults.score_max == 3


def test_overlay_accepts_only_input_slots():
    raw = {"overlay": {"player_field": "x", "p1_name": "Left Name", "__class__": "y"}}

    config = load_automation_config(raw, use_env=False)

    assert callable(config.overlay.player_field)
    assert config.overlay.player_field(True, "name") == "Left Name"


def test_queued_scores_clamped_to_format():
    raw = {
        "defaults": {"score_min": 0},
        "queue": [
            {"format": "FT2", "player1": {"score": 7}, "player2": {"score": 1}},
            {"format": "BO7", "player1": {"score": 4}, "player2": {"score": 9}},
        ],
    }

    config = load_automation_config(raw, use_env=False)

    ft2, bo7 = config.queue
    assert (ft2.player1.score, ft2.player2.score) == (2, 1)
    assert (bo7.player1.score, bo7.player2.score) == (4, 4)


def test_schema_reports_problems():
    problems = validate_automation_config({"obs": {"strict_mode": "yes"}, "queue": {}})

    assert any("obs/strict_mode" in p for p in problems)
    assert any(p.startswith("queue") for p in problems)
    assert validate_automation_config({}) == []


def test_env_overrides_connection(monkeypatch):
    monkeypatch.setenv("OBS_WS_URL", "ws://studio:4455")
    monkeypatch.setenv("OBS_WS_PASSWORD", "hunter2")

    config = load_automation_config({"obs": {"url": "ws://other:1"}})

    assert config.obs.url == "ws://studio:4455"
    assert config.obs.password == "hunter2"


def test_config_from_path(tmp_path):
    path = tmp_path / "automation.json"
    path.write_text(json.dumps({"scenes": {"results": "Podium"}}), encoding="utf-8")

    config = load_automation_config(path=path, use_env=False)

    assert config.scene("results") == "Podium"


def test_missing_config_file_uses_defaults(tmp_path):
    config = load_automation_config(path=tmp_path / "missing.json", use_env=False)

    assert config.scenes == DEFAULT_SCENES


# ---------- SCRIPT ----------

def test_validate_script_accepts_bundled_config(capsys):
    assert validate_main([]) == 0

    out = capsys.readouterr().out
    assert "passed" in out
    assert version.VERSION in out


def test_validate_script_rejects_bad_file(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"defaults": {"format": "FT99"}}), encoding="utf-8")

    assert validate_main([str(path)]) == 1
    assert "defaults/format" in capsys.readouterr().err


# ---------- LOGGING / VERSION ----------

def test_logger_is_cached_and_isolated():
    first = get_logger("tests.config")

    assert get_logger("tests.config") is first
    assert first.propagate is False


def test_version_metadata():
    assert version.as_dict()["version"] == version.VERSION
    assert version.VERSION in version.as_string()
