from __future__ import annotations

from functools import partial
from typing import Optional

from core.commands.base import CommandContext, MatchCommand
from core.match.models import MatchState
from shared.runtime.result import Result


class LoadNextMatchCommand(MatchCommand):
    """
    Replace the current match with the head of the queue.

    Undo restores the previous match and puts the loaded one back at the head
    of the queue, so an undo/redo pair leaves the queue as it found it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._loaded: Optional[MatchState] = None

    @property
    def description(self) -> str:
        return "Load next match"

    async def execute(self, context: CommandContext) -> Result:
        queue = context.state.queue
        upcoming = queue.try_dequeue()
        if upcoming is None:
            return Result.fail("No matches in queue.")

        self._before = context.state.current_match
        try:
            result = await self._replace_match(
                context,
                upcoming,
                partial(self._push, context),
                ok_message="Loaded next match.",
                local_only_message="Load rolled back: overlay update failed.",
            )
        except BaseException:
            queue.push_front(upcoming)
            raise

        if not result.ok:
            queue.push_front(upcoming)
            return result

        self._loaded = upcoming
        return result

    async def undo(self, context: CommandContext) -> Result:
        result = await super().undo(context)
        if result.ok and self._loaded is not None:
            context.state.queue.push_front(self._loaded)
            self._loaded = None
        return result

    async def _push(self, context: CommandContext, match: MatchState) -> Result:
        return await context.overlay.apply_match(match)
