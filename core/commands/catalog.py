"""
Action catalog.

Maps stable action ids (what a hotkey, stream deck button or chat trigger is
bound to) onto fresh command instances. Each call to ``create`` returns a new
command since commands hold their own undo snapshot.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from core.commands.base import Command, CommandContext, InlineCommand
from core.commands.dispatcher import CommandDispatcher
from core.commands.history import RedoCommand, UndoCommand
from core.commands.players import SwapPlayersCommand
from core.commands.queue import LoadNextMatchCommand
from core.commands.scene import SwitchSceneCommand
from core.commands.score import AdjustScoreCommand, ResetMatchCommand
from shared.config.automation import AutomationConfig
from shared.logging.logger import get_logger
from shared.runtime.result import Result, ResultCode

log = get_logger("core.commands.catalog")

CommandFactory = Callable[[], Optional[Command]]

# action id -> scene role in config.scenes
SCENE_ACTIONS: Dict[str, str] = {
    "scene.inmatch": "in_match",
    "scene.desk": "desk",
    "scene.break": "break",
    "scene.results": "results",
}


async def _refresh_overlay(context: CommandContext) -> Result:
    refreshed = await context.gateway.refresh()
    if not refreshed.ok:
        return refreshed
    return await context.overlay.apply_match(context.state.current_match)


class CommandCatalog:
    def __init__(self, config: AutomationConfig, dispatcher: CommandDispatcher):
        self._config = config
        self._dispatcher = dispatcher
        self._factories: Dict[str, CommandFactory] = {}

        for action_id, role in SCENE_ACTIONS.items():
            self.register(action_id, self._scene_factory(role))

        for slot, is_p1 in (("p1", True), ("p2", False)):
            self.register(f"score.{slot}+1", self._score_factory(is_p1, 1))
            self.register(f"score.{slot}-1", self._score_factory(is_p1, -1))

        self.register("players.swap", SwapPlayersCommand)
        self.register("match.reset", ResetMatchCommand)
        self.register("match.next", LoadNextMatchCommand)
        self.register("undo", lambda: UndoCommand(self._dispatcher))
        self.register("redo", lambda: RedoCommand(self._dispatcher))
        self.register(
            "overlay.refresh",
            lambda: InlineCommand(
                "Refresh overlay", _refresh_overlay, record_in_history=False
            ),
        )

    # ------------------------------------------------------------

    @property
    def action_ids(self) -> List[str]:
        return sorted(self._factories)

    def register(self, action_id: str, factory: CommandFactory) -> None:
        if not action_id or not action_id.strip():
            raise ValueError("action id is required")
        key = action_id.strip().lower()
        if key in self._factories:
            log.warning(f"Action '{key}' re-registered; previous binding replaced")
        self._factories[key] = factory

    def create(self, action_id: str) -> Optional[Command]:
        """Return a new command for ``action_id``, or None if it is unbound."""
        if not action_id:
            return None
        factory = self._factories.get(action_id.strip().lower())
        if factory is None:
            return None
        return factory()

    # ------------------------------------------------------------

    def _scene_factory(self, role: str) -> CommandFactory:
        def factory() -> Optional[Command]:
            scene = self._config.scene(role)
            if not scene:
                log.warning(f"No scene configured for role '{role}'")
                return None
            return SwitchSceneCommand(scene)

        return factory

    @staticmethod
    def _score_factory(is_p1: bool, delta: int) -> CommandFactory:
        return lambda: AdjustScoreCommand(is_p1, delta)


def unknown_action(action_id: str) -> Result:
    return Result.fail(
        f"Unknown action '{action_id}'.", code=ResultCode.INVALID_ARGUMENT
    )


__all__ = [
    "CommandCatalog",
    "SCENE_ACTIONS",
    "unknown_action",
]
