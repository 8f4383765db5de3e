from __future__ import annotations

from functools import partial

from core.commands.base import CommandContext, MatchCommand
from core.match.models import MatchState, PlayerInfo
from shared.runtime.result import Result, ResultCode


def _slot(is_p1: bool) -> str:
    return "P1" if is_p1 else "P2"


class SwapPlayersCommand(MatchCommand):
    """
    Swap the two player panels.

    With ``read_overlay`` (default) the panels are first rebuilt from what the
    overlay currently shows, in case an operator edited them in OBS directly.
    Any missing read falls back to the local match.
    """

    restored_message = "Players restored."

    def __init__(self, *, read_overlay: bool = True):
        super().__init__()
        self.read_overlay = read_overlay

    @property
    def description(self) -> str:
        return "Swap players"

    async def execute(self, context: CommandContext) -> Result:
        self._before = context.state.current_match

        source = None
        if self.read_overlay:
            defaults = context.config.defaults
            source = await context.overlay.read_match(
                self._before, score_min=defaults.score_min, score_max=defaults.score_max
            )
            if source is None:
                context.logger.info("SWAP: overlay read-back incomplete; using local state.")

        match = source or self._before
        return await self._replace_match(
            context,
            match.swapped(),
            partial(self._push, context),
            ok_message="Players swapped.",
            local_only_message="Swap rolled back: overlay update failed.",
        )

    async def _push(self, context: CommandContext, match: MatchState) -> Result:
        # Both batches run even when the first fails
        players = await context.overlay.apply_players(match)
        scores = await context.overlay.apply_scores(match)
        if players.ok and scores.ok:
            return Result.success(True, "Players and scores pushed.")

        failed = players if not players.ok else scores
        message = " ".join(r.message for r in (players, scores) if not r.ok)
        return Result.fail(message, code=failed.code, error=failed.error)


class SetPlayerInfoCommand(MatchCommand):
    """Replace one player's identity fields, keeping the current score."""

    no_snapshot_message = "No previous player snapshot available."
    restored_message = "Player info restored."

    def __init__(self, is_p1: bool, player: PlayerInfo):
        super().__init__()
        self.is_p1 = is_p1
        self.player = player

    @property
    def description(self) -> str:
        return f"Set {_slot(self.is_p1)} player info"

    async def execute(self, context: CommandContext) -> Result:
        if not isinstance(self.player, PlayerInfo):
            return Result.fail(
                "Player info must be a PlayerInfo value.",
                code=ResultCode.INVALID_ARGUMENT,
            )
        return await self._apply_identity(context, self.player, "Player info updated.")

    async def _apply_identity(
        self, context: CommandContext, identity: PlayerInfo, ok_message: str
    ) -> Result:
        match = context.state.current_match
        self._before = match

        current = match.player(self.is_p1)
        updated = match.with_player(self.is_p1, current.with_identity(identity))
        return await self._replace_match(
            context,
            updated,
            partial(self._push, context),
            ok_message=ok_message,
            local_only_message="Player change rolled back: overlay update failed.",
        )

    async def _push(self, context: CommandContext, match: MatchState) -> Result:
        return await context.overlay.apply_players(match)


class SetPlayerProfileCommand(SetPlayerInfoCommand):
    """Assign a configured player profile to one panel, keeping the score."""

    restored_message = "Player profile restored."

    def __init__(self, is_p1: bool, profile_id: str):
        super().__init__(is_p1, PlayerInfo())
        self.profile_id = profile_id

    @property
    def description(self) -> str:
        return f"Set {_slot(self.is_p1)} profile '{self.profile_id}'"

    async def execute(self, context: CommandContext) -> Result:
        profile = context.config.profile(self.profile_id)
        if profile is None:
            return Result.fail(
                f"Profile '{self.profile_id}' not found.",
                code=ResultCode.INVALID_ARGUMENT,
            )

        self.player = profile
        return await self._apply_identity(context, profile, "Player profile applied.")
