import asyncio
import os
import tempfile
from typing import Any, Dict, List, Tuple

import pytest

# Keep per-run log files out of the working tree
os.environ.setdefault("MATCHDESK_LOG_DIR", tempfile.mkdtemp(prefix="matchdesk-logs-"))

from core.host import AutomationHost  # noqa: E402
from core.match.models import CountryInfo, MatchFormat, OverlayMetadata, PlayerInfo  # noqa: E402
from services.obs.capability import ObsCapability, ObsInputInfo, ObsSceneItemInfo  # noqa: E402
from shared.config.automation import (  # noqa: E402
    AutomationConfig,
    MatchDefaults,
    ObsConnectionConfig,
    OverlayMapping,
)


TEXT_KIND = "text_gdiplus_v3"
IMAGE_KIND = "image_source"


def run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------
# Fake remote control surface
# ---------------------------------------------------------

class FakeObs(ObsCapability):
    """
    In-memory OBS stand-in.

    connect_mode:
    - "immediate": is_connected flips during connect()
    - "event":     only a "connected" notification is emitted, shortly after
    - "never":     connect() returns but the session never becomes ready
    - "raise":     connect() raises
    """

    def __init__(self, *, connected: bool = True, inputs=None, scenes=None):
        super().__init__()
        self.connected = connected
        self.connect_mode = "immediate"
        self.delay = 0.0

        # name -> (kind, settings)
        self.inputs: Dict[str, Tuple[str, Dict[str, Any]]] = (
            dict(inputs) if inputs is not None else overlay_inputs()
        )
        self.scenes: Dict[str, List[ObsSceneItemInfo]] = (
            dict(scenes) if scenes is not None else default_scenes()
        )

        self.fail_writes = set()
        self.connect_calls = 0
        self.list_calls = 0
        self.writes: List[Tuple[str, Dict[str, Any], bool]] = []
        self.switched: List[str] = []
        self.visibility: List[Tuple[str, int, bool]] = []

    # helpers used by tests
    def text(self, name: str) -> str:
        return self.inputs[name][1].get("text", "")

    def set_text(self, name: str, value: str) -> None:
        self.inputs[name][1]["text"] = value

    def written_names(self) -> List[str]:
        return [name for name, _, _ in self.writes]

    async def _pause(self):
        if self.delay:
            await asyncio.sleep(self.delay)

    # ------------------------------------------------------------
    # ObsCapability
    # ------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self, url: str, password: str) -> None:
        self.connect_calls += 1
        if self.connect_mode == "raise":
            raise ConnectionRefusedError("connection refused")
        if self.connect_mode == "immediate":
            self.connected = True
        elif self.connect_mode == "event":
            asyncio.get_running_loop().call_later(0.02, self.emit, "connected")

    async def disconnect(self) -> None:
        self.connected = False
        self.emit("disconnected")

    async def list_inputs(self) -> List[ObsInputInfo]:
        await self._pause()
        self.list_calls += 1
        return [ObsInputInfo(name, kind) for name, (kind, _) in self.inputs.items()]

    async def get_input_settings(self, name: str) -> Dict[str, Any]:
        await self._pause()
        return dict(self.inputs[name][1])

    async def set_input_settings(self, name: str, settings: Dict[str, Any], overlay: bool) -> None:
        await self._pause()
        if name in self.fail_writes:
            raise RuntimeError(f"write to '{name}' rejected")
        self.writes.append((name, dict(settings), overlay))
        kind, current = self.inputs[name]
        self.inputs[name] = (kind, {**current, **settings} if overlay else dict(settings))

    async def list_scene_items(self, scene: str) -> List[ObsSceneItemInfo]:
        await self._pause()
        return list(self.scenes.get(scene, []))

    async def set_scene_item_enabled(self, scene: str, item_id: int, enabled: bool) -> None:
        self.visibility.append((scene, item_id, enabled))

    async def switch_scene(self, scene: str) -> None:
        self.switched.append(scene)

    async def list_scenes(self) -> List[str]:
        await self._pause()
        return list(self.scenes)


def overlay_inputs(mapping: OverlayMapping = None) -> Dict[str, Tuple[str, Dict[str, Any]]]:
    m = mapping or OverlayMapping()
    inputs = {}
    for is_p1 in (True, False):
        for slot in ("name", "team", "country", "score"):
            inputs[m.player_field(is_p1, slot)] = (TEXT_KIND, {"text": ""})
        inputs[m.player_field(is_p1, "flag")] = (IMAGE_KIND, {"file": ""})
    inputs[m.round_label] = (TEXT_KIND, {"text": ""})
    inputs[m.set_type] = (TEXT_KIND, {"text": ""})
    return inputs


def default_scenes() -> Dict[str, List[ObsSceneItemInfo]]:
    return {
        "In-Game Match": [
            ObsSceneItemInfo(1, "P1 Flag", True),
            ObsSceneItemInfo(2, "Webcam", True),
        ],
        "Commentary": [],
        "Break": [],
        "Results": [],
    }


def make_config(**overrides) -> AutomationConfig:
    config = AutomationConfig(
        obs=ObsConnectionConfig(default_timeout=2.0, connect_timeout=1.0),
        defaults=MatchDefaults(round_label="Pools", format=MatchFormat.FT2),
        metadata=OverlayMetadata([
            CountryInfo("ARG", "ARG", "Argentina", "assets/flags/Argentina.png"),
            CountryInfo("CHL", "CHL", "Chile", "assets/flags/Chile.png"),
            CountryInfo("USA", "USA", "United States", ""),
        ]),
        player_profiles={
            "P1_Default": PlayerInfo(name="PlayerOne", team="TeamA", country="ARG"),
            "P2_Default": PlayerInfo(name="PlayerTwo", team="TeamB", country="USA"),
        },
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


# ---------------------------------------------------------
# Fixtures
# ---------------------------------------------------------

@pytest.fixture
def obs():
    return FakeObs()


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def host(config, obs):
    return AutomationHost(config, obs)
