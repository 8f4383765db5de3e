"""
Overlay sync protocol.

Turns a MatchState into batches of gateway field writes. Within a batch every
write is attempted even after an earlier one fails; the batch result is the
logical AND of its writes and carries the first failure's code.

Unmapped slots (blank input names) are skipped and count as written.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial
from typing import Awaitable, Callable, List, Optional, Tuple

from core.match.models import MatchState, OverlayMetadata, PlayerInfo
from services.obs.gateway import ObsGateway, ObsGatewayError
from shared.config.automation import OverlayMapping
from shared.logging.logger import get_logger
from shared.runtime.result import Result

log = get_logger("overlay.sync")

FieldWrite = Tuple[str, Callable[[], Awaitable[Result]]]


class OverlaySync:
    def __init__(
        self,
        gateway: ObsGateway,
        mapping: OverlayMapping,
        metadata: OverlayMetadata,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._gateway = gateway
        self._mapping = mapping
        self._metadata = metadata
        self._log = logger or log

    # ------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------

    async def apply_match(self, match: MatchState) -> Result:
        parts = [
            await self.apply_round(match),
            await self.apply_players(match),
            await self.apply_scores(match),
        ]
        failed = [part for part in parts if not part.ok]
        if not failed:
            return Result.success(True, "Match pushed to overlay.")

        return Result.fail(
            " ".join(part.message for part in failed),
            code=failed[0].code,
            error=failed[0].error,
        )

    async def apply_players(self, match: MatchState) -> Result:
        writes: List[FieldWrite] = []
        for is_p1, player in ((True, match.player1), (False, match.player2)):
            writes.extend(self._player_writes(is_p1, player))
        return await self._apply_batch("Player fields", writes)

    async def apply_scores(self, match: MatchState) -> Result:
        m = self._mapping
        writes: List[FieldWrite] = [
            self._text(m.p1_score, str(match.player1.score)),
            self._text(m.p2_score, str(match.player2.score)),
        ]
        return await self._apply_batch("Score fields", writes)

    async def apply_round(self, match: MatchState) -> Result:
        m = self._mapping
        writes: List[FieldWrite] = [
            self._text(m.round_label, match.round_label),
            self._text(m.set_type, match.format.label),
        ]
        return await self._apply_batch("Round label", writes)

    # ------------------------------------------------------------
    # Read-back
    # ------------------------------------------------------------

    async def read_match(
        self, current: MatchState, *, score_min: int = 0, score_max: Optional[int] = None
    ) -> Optional[MatchState]:
        """
        Rebuild both player panels from what the overlay currently shows.

        Returns None when any slot is unmapped or unreadable so callers can
        fall back to local state.
        """
        ceiling = current.wins_required
        if score_max is not None:
            ceiling = min(ceiling, score_max)

        players = []
        for is_p1 in (True, False):
            try:
                player = await self._read_player(
                    is_p1, current.player(is_p1), score_min, ceiling
                )
            except ObsGatewayError as e:
                self._log.warning(f"OBS: overlay read-back aborted: {e}")
                return None
            if player is None:
                return None
            players.append(player)

        return replace(current, player1=players[0], player2=players[1])

    async def _read_player(
        self, is_p1: bool, local: PlayerInfo, score_min: int, ceiling: int
    ) -> Optional[PlayerInfo]:
        field = partial(self._mapping.player_field, is_p1)

        values = {}
        for slot in ("name", "team", "country", "score"):
            values[slot] = await self._read(field(slot), self._gateway.get_text)
        values["flag"] = await self._read(field("flag"), self._gateway.get_image_file)

        if any(value is None for value in values.values()):
            return None

        try:
            score = int(values["score"].strip())
        except ValueError:
            self._log.warning(
                f"OBS: score text {values['score']!r} on '{field('score')}' is not a number"
            )
            return None

        country_id = self._metadata.resolve_country(values["country"], values["flag"])
        return replace(
            local,
            name=values["name"],
            team=values["team"],
            country=country_id,
            custom_country_code="" if country_id else values["country"],
            custom_flag_path="" if country_id else values["flag"],
            score=max(score_min, min(score, ceiling)),
        )

    async def _read(self, input_name: str, reader) -> Optional[str]:
        if not input_name or not input_name.strip():
            return None
        result = await reader(input_name)
        return result.value if result.ok else None

    # ------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------

    def _player_writes(self, is_p1: bool, player: PlayerInfo) -> List[FieldWrite]:
        field = partial(self._mapping.player_field, is_p1)
        country = self._metadata.get_country(player.country)
        country_code = player.custom_country_code or country.acronym
        flag_path = player.custom_flag_path or country.flag_path

        writes = [
            self._text(field("name"), player.name),
            self._text(field("team"), player.team),
            self._text(field("country"), country_code),
        ]
        if flag_path.strip():
            writes.append(self._image(field("flag"), flag_path))
        return writes

    def _text(self, input_name: str, value: str) -> FieldWrite:
        return input_name, partial(self._set_text_if_mapped, input_name, value)

    def _image(self, input_name: str, path: str) -> FieldWrite:
        return input_name, partial(self._set_image_if_mapped, input_name, path)

    async def _set_text_if_mapped(self, input_name: str, value: str) -> Result:
        if not input_name or not input_name.strip():
            return Result.success(False, "Unmapped field skipped.")
        return await self._gateway.set_text(input_name, value)

    async def _set_image_if_mapped(self, input_name: str, path: str) -> Result:
        if not input_name or not input_name.strip():
            return Result.success(False, "Unmapped field skipped.")
        return await self._gateway.set_image_file(input_name, path)

    async def _apply_batch(self, label: str, writes: List[FieldWrite]) -> Result:
        failures: List[Tuple[str, Result]] = []
        for input_name, write in writes:
            result = await write()
            if not result.ok:
                failures.append((input_name, result))

        if not failures:
            return Result.success(True, f"{label} updated.")

        names = ", ".join(f"'{name}'" for name, _ in failures)
        self._log.warning(f"OBS: {label}: {len(failures)} of {len(writes)} writes failed ({names})")

        first = failures[0][1]
        return Result.fail(
            f"{label} update failed for {names}.", code=first.code, error=first.error
        )


__all__ = ["OverlaySync"]
