"""
OBS resource-cache gateway.

The gateway is the only path between domain code and the remote control
surface. It owns:

- a local cache of input (field) metadata, lazily populated on first lookup
- per-call timeouts (asyncio.wait_for) with a configurable default
- classification of every remote fault into a ResultCode
- the strict/lenient reporting policy

Lenient mode (default) returns failed Results and never raises. Strict mode
logs the failure and raises ObsGatewayError instead.

Only cache mutation (refresh, settings-cache updates) is serialized through
the cache lock; plain remote reads and writes may run concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Dict, List, Optional, Union

from services.obs.capability import ObsCapability, ObsSceneItemInfo
from shared.logging.logger import get_logger
from shared.runtime.result import Result, ResultCode

log = get_logger("obs.gateway")

DEFAULT_TIMEOUT_SECONDS = 30.0
TEXT_KEY = "text"
# Priority order: the first key present in the input's settings wins
IMAGE_PATH_KEYS = ("file", "local_file")

_CONNECT_POLL_INTERVAL = 0.1


class ObsGatewayError(RuntimeError):
    """Raised by a strict-mode gateway in place of a failed Result."""

    def __init__(self, code: ResultCode, message: str):
        super().__init__(f"{code.value}: {message}")
        self.code = code
        self.message = message


@dataclass(frozen=True)
class CachedInput:
    """Possibly-stale local mirror of one remote input's metadata."""

    name: str
    kind: str
    settings: Optional[Dict[str, Any]] = None


class ObsGateway:
    def __init__(
        self,
        obs: ObsCapability,
        *,
        strict_mode: bool = False,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._obs = obs
        self.strict_mode = strict_mode
        self.default_timeout = default_timeout
        self._log = logger or log

        self._gate = asyncio.Lock()
        self._inputs: Dict[str, CachedInput] = {}

        obs.subscribe("connected", self._on_connected)
        obs.subscribe("disconnected", self._on_disconnected)
        obs.subscribe("error", self._on_error)

    @property
    def is_connected(self) -> bool:
        return self._obs.is_connected

    # ------------------------------------------------------------
    # Session
    # ------------------------------------------------------------

    async def connect(
        self, url: str, password: str = "", *, timeout: Optional[float] = None
    ) -> Result:
        """
        Single bounded connect attempt.

        Readiness is either the capability reporting is_connected or a
        "connected" notification arriving before the deadline.
        """
        if not url or not url.strip():
            return self._fail(ResultCode.INVALID_ARGUMENT, "OBS websocket URL is required.")

        if self._obs.is_connected:
            return Result.success(True, "Already connected.")

        effective = self.default_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        ready = asyncio.Event()

        def _on_ready(*_args):
            loop.call_soon_threadsafe(ready.set)

        self._obs.subscribe("connected", _on_ready)
        try:
            await asyncio.wait_for(
                self._connect_and_wait(url, password, ready), timeout=effective
            )
        except asyncio.TimeoutError as e:
            return self._fail(
                ResultCode.TIMEOUT, f"Connection timed out after {effective}s.", e
            )
        except Exception as e:
            return self._fail(
                ResultCode.OBS_ERROR, "Could not connect to OBS.", e, level=logging.ERROR
            )
        finally:
            self._obs.unsubscribe("connected", _on_ready)

        return Result.success(True, "Connected.")

    async def _connect_and_wait(self, url: str, password: str, ready: asyncio.Event) -> None:
        await self._obs.connect(url, password)
        while not self._obs.is_connected and not ready.is_set():
            try:
                await asyncio.wait_for(ready.wait(), timeout=_CONNECT_POLL_INTERVAL)
            except asyncio.TimeoutError:
                continue

    async def disconnect(self, *, timeout: Optional[float] = None) -> Result:
        try:
            await self._call(self._obs.disconnect(), timeout)
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "Disconnect timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Disconnect failed.", e)
        finally:
            self.invalidate_cache()

        return Result.success(True, "Disconnected.")

    # ------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------

    async def refresh(self, *, timeout: Optional[float] = None) -> Result:
        precheck = self._ensure_connected()
        if not precheck.ok:
            return precheck

        async with self._gate:
            try:
                inputs = await self._call(self._obs.list_inputs(), timeout)
            except asyncio.TimeoutError as e:
                return self._fail(ResultCode.TIMEOUT, "Refreshing input cache timed out.", e)
            except Exception as e:
                return self._fail(ResultCode.OBS_ERROR, "Refreshing input cache failed.", e)

            self._inputs = {
                info.name: CachedInput(name=info.name, kind=info.kind)
                for info in inputs
            }
            count = len(self._inputs)

        self._log.debug(f"OBS: cached {count} inputs")
        return Result.success(count, f"Cached {count} inputs.")

    def invalidate_cache(self) -> None:
        self._inputs = {}

    def cached_input(self, name: str) -> Optional[CachedInput]:
        """Peek at the cache without triggering a refresh."""
        return self._inputs.get(name)

    def cached_count(self) -> int:
        return len(self._inputs)

    # ------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------

    async def get_field_exists(self, name: str, *, timeout: Optional[float] = None) -> Result:
        cached = await self._require_input(name, timeout)
        if not cached.ok:
            return cached
        return Result.success(True)

    async def get_field_kind(self, name: str, *, timeout: Optional[float] = None) -> Result:
        cached = await self._require_input(name, timeout)
        if not cached.ok:
            return cached
        return Result.success(cached.value.kind)

    async def get_field_settings(self, name: str, *, timeout: Optional[float] = None) -> Result:
        check = await self._require_input(name, timeout)
        if not check.ok:
            return check

        try:
            settings = await self._call(self._obs.get_input_settings(name), timeout)
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "GetInputSettings timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Failed to read input settings.", e)

        if not isinstance(settings, dict):
            return self._fail(
                ResultCode.OBS_ERROR,
                f"Input '{name}' returned settings of type {type(settings).__name__}.",
            )

        async with self._gate:
            # A concurrent invalidate/refresh may have dropped the entry
            cached = self._inputs.get(name)
            if cached is not None:
                self._inputs[name] = replace(cached, settings=dict(settings))

        return Result.success(dict(settings))

    async def set_field_settings(
        self,
        name: str,
        settings: Dict[str, Any],
        overlay: bool = True,
        *,
        timeout: Optional[float] = None,
    ) -> Result:
        if settings is None:
            return self._fail(ResultCode.INVALID_ARGUMENT, "settings is required.")

        check = await self._require_input(name, timeout)
        if not check.ok:
            return check

        try:
            await self._call(self._obs.set_input_settings(name, dict(settings), overlay), timeout)
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "SetInputSettings timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Failed to set input settings.", e)

        return Result.success(True, "Input settings updated.")

    async def set_text(self, name: str, text: str, *, timeout: Optional[float] = None) -> Result:
        if not isinstance(text, str):
            return self._fail(ResultCode.INVALID_ARGUMENT, "text is required.")

        current = await self.get_field_settings(name, timeout=timeout)
        if not current.ok:
            return current

        if TEXT_KEY not in current.value:
            return self._fail(
                ResultCode.TYPE_MISMATCH,
                f"Input '{name}' does not expose a '{TEXT_KEY}' setting key.",
            )

        return await self.set_field_settings(name, {TEXT_KEY: text}, True, timeout=timeout)

    async def get_text(self, name: str, *, timeout: Optional[float] = None) -> Result:
        current = await self.get_field_settings(name, timeout=timeout)
        if not current.ok:
            return current

        if TEXT_KEY not in current.value:
            return self._fail(
                ResultCode.TYPE_MISMATCH,
                f"Input '{name}' does not expose a '{TEXT_KEY}' setting key.",
            )
        return Result.success(str(current.value[TEXT_KEY] or ""))

    async def set_image_file(
        self, name: str, file_path: str, *, timeout: Optional[float] = None
    ) -> Result:
        if not isinstance(file_path, str) or not file_path.strip():
            return self._fail(ResultCode.INVALID_ARGUMENT, "file_path is required.")

        current = await self.get_field_settings(name, timeout=timeout)
        if not current.ok:
            return current

        key = _image_key(current.value)
        if key is None:
            return self._fail(
                ResultCode.TYPE_MISMATCH,
                f"Input '{name}' does not support a recognized image path setting key.",
            )

        return await self.set_field_settings(name, {key: file_path}, True, timeout=timeout)

    async def get_image_file(self, name: str, *, timeout: Optional[float] = None) -> Result:
        current = await self.get_field_settings(name, timeout=timeout)
        if not current.ok:
            return current

        key = _image_key(current.value)
        if key is None:
            return self._fail(
                ResultCode.TYPE_MISMATCH,
                f"Input '{name}' does not support a recognized image path setting key.",
            )
        return Result.success(str(current.value[key] or ""))

    # ------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------

    async def get_scene_names(self, *, timeout: Optional[float] = None) -> Result:
        precheck = self._ensure_connected()
        if not precheck.ok:
            return precheck

        try:
            names = await self._call(self._obs.list_scenes(), timeout)
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "Scene lookup timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Failed to load scene list.", e)

        return Result.success(list(names))

    async def switch_scene(self, scene: str, *, timeout: Optional[float] = None) -> Result:
        if not scene or not scene.strip():
            return self._fail(ResultCode.INVALID_ARGUMENT, "scene name is required.")

        # Scene lists are never cached; operators add scenes mid-show
        names = await self.get_scene_names(timeout=timeout)
        if not names.ok:
            return names

        if scene not in names.value:
            return self._fail(ResultCode.NOT_FOUND, f"Scene '{scene}' was not found.")

        try:
            await self._call(self._obs.switch_scene(scene), timeout)
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "SwitchScene timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Failed to switch scene.", e)

        return Result.success(True, f"Switched to scene '{scene}'.")

    async def get_scene_item_id(
        self, scene: str, item_name: str, *, timeout: Optional[float] = None
    ) -> Result:
        if not scene or not scene.strip() or not item_name or not item_name.strip():
            return self._fail(
                ResultCode.INVALID_ARGUMENT, "scene and scene item name are required."
            )

        items = await self._get_scene_items(scene, timeout)
        if not items.ok:
            return items

        for item in items.value:
            if item.source_name == item_name:
                return Result.success(item.item_id)

        return self._fail(
            ResultCode.NOT_FOUND,
            f"Scene item '{item_name}' not found in scene '{scene}'.",
        )

    async def set_visibility(
        self,
        scene: str,
        item: Union[int, str],
        visible: bool,
        *,
        timeout: Optional[float] = None,
    ) -> Result:
        if isinstance(item, str):
            resolved = await self.get_scene_item_id(scene, item, timeout=timeout)
            if not resolved.ok:
                return resolved
            item_id = resolved.value
        elif isinstance(item, int) and not isinstance(item, bool):
            item_id = item
        else:
            return self._fail(
                ResultCode.INVALID_ARGUMENT, "scene item must be a name or an id."
            )

        if not scene or not scene.strip():
            return self._fail(ResultCode.INVALID_ARGUMENT, "scene name is required.")

        precheck = self._ensure_connected()
        if not precheck.ok:
            return precheck

        try:
            await self._call(
                self._obs.set_scene_item_enabled(scene, item_id, bool(visible)), timeout
            )
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "SetVisibility timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Failed to set scene item visibility.", e)

        return Result.success(True, "Visibility updated.")

    # ------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------

    async def _get_scene_items(self, scene: str, timeout: Optional[float]) -> Result:
        precheck = self._ensure_connected()
        if not precheck.ok:
            return precheck

        try:
            items: List[ObsSceneItemInfo] = await self._call(
                self._obs.list_scene_items(scene), timeout
            )
        except asyncio.TimeoutError as e:
            return self._fail(ResultCode.TIMEOUT, "GetSceneItemList timed out.", e)
        except Exception as e:
            return self._fail(ResultCode.OBS_ERROR, "Failed to load scene item list.", e)

        return Result.success(list(items))

    async def _get_cached_input(self, name: str, timeout: Optional[float]) -> Result:
        if not isinstance(name, str) or not name.strip():
            return self._fail(ResultCode.INVALID_ARGUMENT, "input name is required.")

        precheck = self._ensure_connected()
        if not precheck.ok:
            return precheck

        async with self._gate:
            needs_refresh = not self._inputs

        if needs_refresh:
            refreshed = await self.refresh(timeout=timeout)
            if not refreshed.ok:
                return refreshed

        async with self._gate:
            return Result.success(self._inputs.get(name))

    async def _require_input(self, name: str, timeout: Optional[float]) -> Result:
        cached = await self._get_cached_input(name, timeout)
        if not cached.ok:
            return cached

        if cached.value is None:
            return self._fail(ResultCode.NOT_FOUND, f"Input '{name}' was not found.")
        return cached

    def _ensure_connected(self) -> Result:
        if self._obs.is_connected:
            return Result.success()
        return self._fail(ResultCode.NOT_CONNECTED, "Not connected to OBS.")

    async def _call(self, awaitable: Awaitable[Any], timeout: Optional[float]) -> Any:
        effective = self.default_timeout if timeout is None else timeout
        return await asyncio.wait_for(awaitable, timeout=effective)

    def _fail(
        self,
        code: ResultCode,
        message: str,
        error: Optional[BaseException] = None,
        *,
        level: int = logging.WARNING,
    ) -> Result:
        detail = f" ({error})" if error is not None and str(error) else ""
        self._log.log(level, f"OBS: operation failed: {code.value} - {message}{detail}")

        if self.strict_mode:
            raise ObsGatewayError(code, message) from error

        return Result.fail(message, code=code, error=error)

    # ------------------------------------------------------------
    # Capability notifications
    # ------------------------------------------------------------

    def _on_connected(self) -> None:
        self._log.info("OBS: connected")

    def _on_disconnected(self) -> None:
        self.invalidate_cache()
        self._log.info("OBS: disconnected (input cache cleared)")

    def _on_error(self, error: Optional[BaseException] = None) -> None:
        self._log.warning(f"OBS: adapter error: {error}")


def _image_key(settings: Dict[str, Any]) -> Optional[str]:
    for key in IMAGE_PATH_KEYS:
        if key in settings:
            return key
    return None


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "IMAGE_PATH_KEYS",
    "TEXT_KEY",
    "CachedInput",
    "ObsGateway",
    "ObsGatewayError",
]
