"""
Automation configuration.

Replaces a hard-coded configuration script with an explicit value handed to
the AutomationHost at construction. The JSON document is validated against a
Draft-7 schema; violations are logged as warnings and each section falls back
to defaults independently, so a half-broken file still boots.

Connection secrets are read from the environment (OBS_WS_URL,
OBS_WS_PASSWORD) after loading a local .env file, and override the document.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from jsonschema import Draft7Validator

from core.match.models import (
    CountryInfo,
    MatchFormat,
    MatchState,
    OverlayMetadata,
    PlayerInfo,
)
from shared.logging.logger import get_logger

log = get_logger("shared.config.automation")

_CONFIG_PATH = Path(__file__).parent / "automation.json"

ENV_OBS_URL = "OBS_WS_URL"
ENV_OBS_PASSWORD = "OBS_WS_PASSWORD"


# ------------------------------------------------------------
# Schema
# ------------------------------------------------------------

_PLAYER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "team": {"type": "string"},
        "country": {"type": "string"},
        "characters": {"type": "array", "items": {"type": "string"}},
        "score": {"type": "integer", "minimum": 0},
        "custom_country_code": {"type": "string"},
        "custom_flag_path": {"type": "string"},
    },
}

_FORMAT_SCHEMA: Dict[str, Any] = {"enum": [f.value for f in MatchFormat]}

AUTOMATION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "obs": {
            "type": "object",
            "properties": {
                "url": {"type": "string"},
                "password": {"type": "string"},
                "auto_connect": {"type": "boolean"},
                "connect_timeout": {"type": "number", "exclusiveMinimum": 0},
                "default_timeout": {"type": "number", "exclusiveMinimum": 0},
                "strict_mode": {"type": "boolean"},
            },
        },
        "scenes": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
        "overlay": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
        "defaults": {
            "type": "object",
            "properties": {
                "round_label": {"type": "string"},
                "format": _FORMAT_SCHEMA,
                "score_min": {"type": "integer", "minimum": 0},
                "score_max": {"type": "integer", "minimum": 0},
            },
        },
        "countries": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "acronym": {"type": "string"},
                    "display_name": {"type": "string"},
                    "flag_path": {"type": "string"},
                },
            },
        },
        "player_profiles": {
            "type": "object",
            "additionalProperties": _PLAYER_SCHEMA,
        },
        "queue": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "round_label": {"type": "string"},
                    "format": _FORMAT_SCHEMA,
                    "player1": _PLAYER_SCHEMA,
                    "player2": _PLAYER_SCHEMA,
                },
            },
        },
    },
}


# ------------------------------------------------------------
# Config values
# ------------------------------------------------------------

@dataclass
class ObsConnectionConfig:
    url: str = "ws://127.0.0.1:4455"
    password: str = ""
    auto_connect: bool = True
    connect_timeout: float = 20.0
    default_timeout: float = 30.0
    strict_mode: bool = False


DEFAULT_SCENES: Dict[str, str] = {
    "in_match": "In-Game Match",
    "desk": "Commentary",
    "break": "Break",
    "results": "Results",
}


@dataclass
class OverlayMapping:
    """OBS input names per overlay slot. A blank name leaves the slot unmapped."""

    p1_name: str = "P1 Player Name"
    p1_team: str = "P1 Team Name"
    p1_country: str = "P1 Country Name"
    p1_flag: str = "P1 Flag"
    p1_score: str = "P1 Score"

    p2_name: str = "P2 Player Name"
    p2_team: str = "P2 Team Name"
    p2_country: str = "P2 Country Name"
    p2_flag: str = "P2 Flag"
    p2_score: str = "P2 Score"

    round_label: str = "Round Label"
    set_type: str = "Best Of"

    def player_field(self, is_p1: bool, slot: str) -> str:
        return getattr(self, f"{'p1' if is_p1 else 'p2'}_{slot}")


@dataclass
class MatchDefaults:
    round_label: str = "Pools"
    format: MatchFormat = MatchFormat.FT2
    score_min: int = 0
    # Sanity ceiling for scores read back from overlay text
    score_max: int = 4


@dataclass
class AutomationConfig:
    obs: ObsConnectionConfig = field(default_factory=ObsConnectionConfig)
    scenes: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SCENES))
    overlay: OverlayMapping = field(default_factory=OverlayMapping)
    defaults: MatchDefaults = field(default_factory=MatchDefaults)
    metadata: OverlayMetadata = field(default_factory=OverlayMetadata)
    player_profiles: Dict[str, PlayerInfo] = field(default_factory=dict)
    queue: List[MatchState] = field(default_factory=list)

    def scene(self, role: str) -> Optional[str]:
        return self.scenes.get(role)

    def profile(self, profile_id: str) -> Optional[PlayerInfo]:
        """Case-insensitive profile lookup."""
        if not profile_id:
            return None
        wanted = profile_id.strip().lower()
        for key, info in self.player_profiles.items():
            if key.lower() == wanted:
                return info
        return None

    def build_initial_match(self) -> MatchState:
        return MatchState(
            round_label=self.defaults.round_label,
            format=self.defaults.format,
        )


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        log.warning(f"automation config not found at {path}; using defaults")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            log.warning("automation config root is not an object; ignoring")
    except Exception as e:
        log.warning(f"Failed to load automation config ({e}); using defaults")

    return {}


def validate_automation_config(raw: Any) -> List[str]:
    """Return human-readable schema violations (empty when valid)."""
    validator = Draft7Validator(AUTOMATION_SCHEMA)
    errors = sorted(validator.iter_errors(raw), key=lambda e: list(e.path))
    messages: List[str] = []
    for err in errors:
        loc = "/".join(str(p) for p in err.path) or "<root>"
        messages.append(f"{loc}: {err.message}")
    return messages


def _as_float(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        log.warning(f"{name} must be a number; defaulting to {default}")
        return default
    if number <= 0:
        log.warning(f"{name} must be positive; defaulting to {default}")
        return default
    return number


def _as_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        log.warning(f"{name} must be an integer; defaulting to {default}")
        return default


def _as_bool(value: Any, default: bool, name: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    log.warning(f"{name} must be boolean; defaulting to {str(default).lower()}")
    return default


def _load_obs(raw: Any) -> ObsConnectionConfig:
    if not isinstance(raw, dict):
        return ObsConnectionConfig()

    base = ObsConnectionConfig()
    return ObsConnectionConfig(
        url=str(raw.get("url", base.url) or ""),
        password=str(raw.get("password", base.password) or ""),
        auto_connect=_as_bool(raw.get("auto_connect"), base.auto_connect, "obs.auto_connect"),
        connect_timeout=_as_float(raw.get("connect_timeout"), base.connect_timeout, "obs.connect_timeout"),
        default_timeout=_as_float(raw.get("default_timeout"), base.default_timeout, "obs.default_timeout"),
        strict_mode=_as_bool(raw.get("strict_mode"), base.strict_mode, "obs.strict_mode"),
    )


def _load_scenes(raw: Any) -> Dict[str, str]:
    scenes = dict(DEFAULT_SCENES)
    if isinstance(raw, dict):
        for role, name in raw.items():
            if isinstance(name, str) and name.strip():
                scenes[str(role)] = name
    return scenes


def _load_overlay(raw: Any) -> OverlayMapping:
    mapping = OverlayMapping()
    if not isinstance(raw, dict):
        return mapping

    slots = {f.name for f in fields(OverlayMapping)}
    for slot, name in raw.items():
        if slot not in slots:
            log.warning(f"Unknown overlay slot '{slot}' ignored")
            continue
        if isinstance(name, str):
            setattr(mapping, slot, name)
    return mapping


def _load_defaults(raw: Any) -> MatchDefaults:
    base = MatchDefaults()
    if not isinstance(raw, dict):
        return base

    fmt = MatchFormat.from_value(raw.get("format"), default=base.format)
    score_min = max(0, _as_int(raw.get("score_min"), base.score_min, "defaults.score_min"))
    score_max = _as_int(raw.get("score_max"), base.score_max, "defaults.score_max")
    if score_max < score_min:
        log.warning(
            f"defaults.score_max ({score_max}) below score_min ({score_min}); "
            f"using {score_min}"
        )
        score_max = score_min

    return MatchDefaults(
        round_label=str(raw.get("round_label", base.round_label) or ""),
        format=fmt,
        score_min=score_min,
        score_max=score_max,
    )


def _load_countries(raw: Any) -> OverlayMetadata:
    countries: List[CountryInfo] = []
    if isinstance(raw, list):
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            country_id = str(entry["id"]).strip().upper()
            countries.append(
                CountryInfo(
                    country_id=country_id,
                    acronym=str(entry.get("acronym", country_id) or ""),
                    display_name=str(entry.get("display_name", "") or ""),
                    flag_path=str(entry.get("flag_path", "") or ""),
                )
            )
    return OverlayMetadata(countries)


def parse_player(raw: Any) -> PlayerInfo:
    if not isinstance(raw, dict):
        return PlayerInfo()

    characters = raw.get("characters") or []
    if not isinstance(characters, list):
        characters = []

    return PlayerInfo(
        name=str(raw.get("name", "") or ""),
        team=str(raw.get("team", "") or ""),
        country=str(raw.get("country", "") or "").strip().upper(),
        characters=tuple(str(c) for c in characters),
        score=max(0, _as_int(raw.get("score"), 0, "player.score")),
        custom_country_code=str(raw.get("custom_country_code", "") or ""),
        custom_flag_path=str(raw.get("custom_flag_path", "") or ""),
    )


def parse_match(raw: Any, defaults: MatchDefaults) -> Optional[MatchState]:
    if not isinstance(raw, dict):
        return None

    fmt = MatchFormat.from_value(raw.get("format"), default=defaults.format)
    label = str(raw.get("round_label", defaults.round_label) or "")

    players = []
    for slot in ("player1", "player2"):
        player = parse_player(raw.get(slot))
        score = max(defaults.score_min, min(player.score, fmt.wins_required))
        if score != player.score:
            log.warning(
                f"queue '{label}' {slot}.score {player.score} outside "
                f"[{defaults.score_min}, {fmt.wins_required}] for {fmt.label}; using {score}"
            )
            player = player.with_score(score)
        players.append(player)

    return MatchState(
        round_label=label,
        format=fmt,
        player1=players[0],
        player2=players[1],
    )


def _apply_env(obs: ObsConnectionConfig) -> None:
    load_dotenv()

    url = os.getenv(ENV_OBS_URL)
    if url and url.strip():
        obs.url = url.strip()

    password = os.getenv(ENV_OBS_PASSWORD)
    if password:
        obs.password = password

    log.debug(
        "[BOOT] OBS credentials resolved: "
        f"url={'ENV' if url else 'CONFIG'}, "
        f"password={'SET' if obs.password else 'EMPTY'}"
    )


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------

def load_automation_config(
    raw: Optional[Dict[str, Any]] = None,
    *,
    path: Optional[Path] = None,
    use_env: bool = True,
) -> AutomationConfig:
    if raw is None:
        raw = _load_json(Path(path) if path else _CONFIG_PATH)

    if not isinstance(raw, dict):
        log.warning("automation config must be an object; using defaults")
        raw = {}

    for problem in validate_automation_config(raw):
        log.warning(f"automation config validation warning at {problem}")

    obs = _load_obs(raw.get("obs"))
    if use_env:
        _apply_env(obs)

    defaults = _load_defaults(raw.get("defaults"))

    profiles: Dict[str, PlayerInfo] = {}
    profiles_raw = raw.get("player_profiles")
    if isinstance(profiles_raw, dict):
        for profile_id, entry in profiles_raw.items():
            profiles[str(profile_id)] = parse_player(entry)

    queue: List[MatchState] = []
    queue_raw = raw.get("queue")
    if isinstance(queue_raw, list):
        for entry in queue_raw:
            match = parse_match(entry, defaults)
            if match is not None:
                queue.append(match)

    config = AutomationConfig(
        obs=obs,
        scenes=_load_scenes(raw.get("scenes")),
        overlay=_load_overlay(raw.get("overlay")),
        defaults=defaults,
        metadata=_load_countries(raw.get("countries")),
        player_profiles=profiles,
        queue=queue,
    )

    log.info(
        f"[BOOT] Automation config loaded: scenes={len(config.scenes)}, "
        f"profiles={len(config.player_profiles)}, queued={len(config.queue)}, "
        f"strict={'ON' if config.obs.strict_mode else 'OFF'}"
    )
    return config


__all__ = [
    "AUTOMATION_SCHEMA",
    "AutomationConfig",
    "DEFAULT_SCENES",
    "MatchDefaults",
    "ObsConnectionConfig",
    "OverlayMapping",
    "load_automation_config",
    "parse_match",
    "parse_player",
    "validate_automation_config",
]
