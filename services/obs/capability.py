"""
Remote control surface capability.

Concrete adapters (websocket clients, test fakes) translate their wire
responses into the shapes below before anything reaches the gateway. The
gateway only ever sees ObsInputInfo / ObsSceneItemInfo / plain dicts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from shared.logging.logger import get_logger

log = get_logger("obs.capability")

CAPABILITY_EVENTS = ("connected", "disconnected", "error")


@dataclass(frozen=True)
class ObsInputInfo:
    name: str
    kind: str


@dataclass(frozen=True)
class ObsSceneItemInfo:
    item_id: int
    source_name: str
    enabled: bool


class ObsCapability(ABC):
    """
    Abstract operations a remote overlay service must support.

    Notifications:
    - "connected"    : handler()
    - "disconnected" : handler()
    - "error"        : handler(exc)
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable[..., None]]] = {
            event: [] for event in CAPABILITY_EVENTS
        }

    # ------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------

    def subscribe(self, event: str, handler: Callable[..., None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown capability event: {event}")
        self._listeners[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable[..., None]) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            try:
                handler(*args)
            except Exception as e:
                log.warning(f"OBS: '{event}' listener error ignored: {e}")

    # ------------------------------------------------------------
    # Session
    # ------------------------------------------------------------

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def connect(self, url: str, password: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------

    @abstractmethod
    async def list_inputs(self) -> List[ObsInputInfo]:
        raise NotImplementedError

    @abstractmethod
    async def get_input_settings(self, name: str) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def set_input_settings(
        self, name: str, settings: Dict[str, Any], overlay: bool
    ) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------

    @abstractmethod
    async def list_scene_items(self, scene: str) -> List[ObsSceneItemInfo]:
        raise NotImplementedError

    @abstractmethod
    async def set_scene_item_enabled(
        self, scene: str, item_id: int, enabled: bool
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def switch_scene(self, scene: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_scenes(self) -> List[str]:
        raise NotImplementedError
