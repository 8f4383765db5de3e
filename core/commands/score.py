from __future__ import annotations

from functools import partial

from core.commands.base import CommandContext, MatchCommand
from core.match.models import MatchState
from shared.runtime.result import Result, ResultCode


class AdjustScoreCommand(MatchCommand):
    restored_message = "Score restored."

    def __init__(self, is_p1: bool, delta: int):
        super().__init__()
        self.is_p1 = is_p1
        self.delta = delta

    @property
    def description(self) -> str:
        return f"Adjust {'P1' if self.is_p1 else 'P2'} score by {self.delta}"

    async def execute(self, context: CommandContext) -> Result:
        if isinstance(self.delta, bool) or not isinstance(self.delta, int):
            return Result.fail(
                f"Score delta must be an integer, got {self.delta!r}.",
                code=ResultCode.INVALID_ARGUMENT,
            )

        match = context.state.current_match
        self._before = match

        low = context.config.defaults.score_min
        high = match.wins_required
        player = match.player(self.is_p1)
        next_score = max(low, min(player.score + self.delta, high))
        updated = match.with_player(self.is_p1, player.with_score(next_score))

        result = await self._replace_match(
            context,
            updated,
            partial(self._push, context),
            ok_message="Score updated.",
            local_only_message="Score change rolled back: overlay update failed.",
        )

        if result.ok:
            if updated.is_match_point_p1:
                context.logger.info("MATCH POINT: P1 is on match point.")
            if updated.is_match_point_p2:
                context.logger.info("MATCH POINT: P2 is on match point.")
        return result

    async def _push(self, context: CommandContext, match: MatchState) -> Result:
        return await context.overlay.apply_scores(match)


class ResetMatchCommand(MatchCommand):
    @property
    def description(self) -> str:
        return "Reset match"

    async def execute(self, context: CommandContext) -> Result:
        match = context.state.current_match
        self._before = match

        return await self._replace_match(
            context,
            match.with_scores(0, 0),
            partial(self._push, context),
            ok_message="Match reset.",
            local_only_message="Reset rolled back: overlay update failed.",
        )

    async def _push(self, context: CommandContext, match: MatchState) -> Result:
        return await context.overlay.apply_scores(match)
