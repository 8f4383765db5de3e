"""
Automation host.

Composition root for one tournament desk: builds the gateway, overlay sync,
tournament state and dispatcher from an AutomationConfig, and exposes one
coroutine per operator intent. Every intent returns a Result.

Intents are expected to be submitted one at a time (a single UI / hotkey
stream); the dispatcher does not serialize concurrent callers.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.commands.base import Command, CommandContext
from core.commands.catalog import CommandCatalog, unknown_action
from core.commands.dispatcher import CommandDispatcher
from core.commands.players import (
    SetPlayerInfoCommand,
    SetPlayerProfileCommand,
    SwapPlayersCommand,
)
from core.commands.queue import LoadNextMatchCommand
from core.commands.scene import SwitchSceneCommand
from core.commands.score import AdjustScoreCommand, ResetMatchCommand
from core.match.models import MatchState, PlayerInfo
from core.match.state import TournamentState
from runtime.version import as_string as version_string
from services.obs.capability import ObsCapability
from services.obs.gateway import ObsGateway
from services.overlay.sync import OverlaySync
from shared.config.automation import AutomationConfig
from shared.logging.logger import get_logger
from shared.runtime.result import Result, ResultCode

log = get_logger("core.host")


class AutomationHost:
    def __init__(
        self,
        config: AutomationConfig,
        capability: ObsCapability,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self._log = logger or log

        # --------------------------------------------------
        # OBS SIDE
        # --------------------------------------------------
        self.gateway = ObsGateway(
            capability,
            strict_mode=config.obs.strict_mode,
            default_timeout=config.obs.default_timeout,
            logger=logger,
        )
        self.overlay = OverlaySync(
            self.gateway, config.overlay, config.metadata, logger=logger
        )

        # --------------------------------------------------
        # LOCAL STATE
        # --------------------------------------------------
        self._state = TournamentState(
            config.build_initial_match(),
            current_scene=config.scene("in_match") or "",
        )
        for match in config.queue:
            self._state.queue.enqueue(match)

        self._dispatcher = CommandDispatcher(logger)
        self.catalog = CommandCatalog(config, self._dispatcher)

        self._context = CommandContext(
            state=self._state,
            gateway=self.gateway,
            overlay=self.overlay,
            logger=self._log,
            config=config,
        )

        self._log.info(
            f"[BOOT] {version_string()} automation host ready "
            f"(scene='{self._state.current_scene}', queued={len(self._state.queue)}, "
            f"strict={'ON' if config.obs.strict_mode else 'OFF'})"
        )

    # ------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------

    @property
    def state(self) -> TournamentState:
        return self._state

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def context(self) -> CommandContext:
        return self._context

    # ------------------------------------------------------------
    # Session
    # ------------------------------------------------------------

    async def start(self) -> Result:
        """
        Start-up sequence: when auto-connect is enabled, connect to OBS and
        push the current match to the overlay. Otherwise nothing is contacted.
        """
        if not self.config.obs.auto_connect:
            self._log.info("[BOOT] OBS auto-connect disabled; waiting for manual connect")
            return Result.success(False, "Auto-connect disabled.")

        connected = await self.connect()
        if not connected.ok:
            self._log.warning(f"[BOOT] OBS auto-connect failed: {connected.message}")
            return connected

        return await self.refresh_overlay()

    async def connect(self) -> Result:
        obs = self.config.obs
        return await self.gateway.connect(
            obs.url, obs.password, timeout=obs.connect_timeout
        )

    async def disconnect(self) -> Result:
        return await self.gateway.disconnect()

    async def refresh_overlay(self) -> Result:
        """Re-read the input cache and push the whole current match."""
        refreshed = await self.gateway.refresh()
        if not refreshed.ok:
            return refreshed
        return await self.overlay.apply_match(self._state.current_match)

    # ------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------

    async def switch_scene(self, scene: str) -> Result:
        if not isinstance(scene, str) or not scene.strip():
            return self._invalid("Scene name is required.")
        return await self._run(SwitchSceneCommand(scene))

    async def adjust_score(self, is_p1: bool, delta: int) -> Result:
        return await self._run(AdjustScoreCommand(is_p1, delta))

    async def swap_players(self, *, read_overlay: bool = True) -> Result:
        return await self._run(SwapPlayersCommand(read_overlay=read_overlay))

    async def reset_match(self) -> Result:
        return await self._run(ResetMatchCommand())

    async def load_next(self) -> Result:
        return await self._run(LoadNextMatchCommand())

    async def undo(self) -> Result:
        return await self._dispatcher.undo(self._context)

    async def redo(self) -> Result:
        return await self._dispatcher.redo(self._context)

    async def set_player(self, is_p1: bool, info: PlayerInfo) -> Result:
        if info is None:
            return self._invalid("Player info is required.")
        return await self._run(SetPlayerInfoCommand(is_p1, info))

    async def apply_profile(self, is_p1: bool, profile_id: str) -> Result:
        if not profile_id or not str(profile_id).strip():
            return self._invalid("Profile id is required.")
        return await self._run(SetPlayerProfileCommand(is_p1, profile_id))

    async def run_action(self, action_id: str) -> Result:
        command = self.catalog.create(action_id)
        if command is None:
            result = unknown_action(action_id)
            self._log.warning(f"CMD DO FAILED: {action_id!r} -> {result.message}")
            return result
        return await self._run(command)

    def enqueue_match(self, match: MatchState) -> Result:
        if not isinstance(match, MatchState):
            return self._invalid("Only MatchState values can be queued.")
        self._state.queue.enqueue(match)
        return Result.success(len(self._state.queue), "Match queued.")

    # ------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------

    async def _run(self, command: Command) -> Result:
        return await self._dispatcher.execute(command, self._context)

    def _invalid(self, message: str) -> Result:
        self._log.warning(f"Rejected intent: {message}")
        return Result.fail(message, code=ResultCode.INVALID_ARGUMENT)


__all__ = ["AutomationHost"]
