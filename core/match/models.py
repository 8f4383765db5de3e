"""
Match data model.

Values here are immutable. Commands never edit a match in place; they derive
a modified copy and hand it to TournamentState, which keeps snapshots taken
for undo valid for as long as the command holds them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class MatchFormat(Enum):
    """Set length; the value is the label pushed to the overlay."""

    FT2 = "FT2"
    FT3 = "FT3"
    BO5 = "BO5"
    BO7 = "BO7"

    @property
    def wins_required(self) -> int:
        return _WINS_REQUIRED[self]

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_value(
        cls, value: Any, *, default: Optional["MatchFormat"] = None
    ) -> "MatchFormat":
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if normalized == member.value:
                    return member

        if default is not None:
            return default
        raise ValueError(f"Unknown match format: {value!r}")


_WINS_REQUIRED: Dict[MatchFormat, int] = {
    MatchFormat.FT2: 2,
    MatchFormat.FT3: 3,
    MatchFormat.BO5: 3,
    MatchFormat.BO7: 4,
}


@dataclass(frozen=True)
class PlayerInfo:
    name: str = ""
    team: str = ""
    country: str = ""
    characters: Tuple[str, ...] = ()
    score: int = 0

    # Per-player overrides for the country metadata lookup
    custom_country_code: str = ""
    custom_flag_path: str = ""

    def __post_init__(self):
        # Accept any iterable of ids but store an immutable tuple
        if not isinstance(self.characters, tuple):
            object.__setattr__(self, "characters", tuple(self.characters))

    def with_score(self, score: int) -> "PlayerInfo":
        return replace(self, score=score)

    def with_identity(self, other: "PlayerInfo") -> "PlayerInfo":
        """Take every identity field from ``other`` while keeping this score."""
        return replace(other, score=self.score)


@dataclass(frozen=True)
class MatchState:
    round_label: str = ""
    format: MatchFormat = MatchFormat.BO5
    player1: PlayerInfo = field(default_factory=PlayerInfo)
    player2: PlayerInfo = field(default_factory=PlayerInfo)

    @property
    def wins_required(self) -> int:
        return self.format.wins_required

    @property
    def is_match_over(self) -> bool:
        return (
            self.player1.score >= self.wins_required
            or self.player2.score >= self.wins_required
        )

    @property
    def is_match_point_p1(self) -> bool:
        return (
            self.player1.score == self.wins_required - 1
            and self.player2.score < self.wins_required
        )

    @property
    def is_match_point_p2(self) -> bool:
        return (
            self.player2.score == self.wins_required - 1
            and self.player1.score < self.wins_required
        )

    def player(self, is_p1: bool) -> PlayerInfo:
        return self.player1 if is_p1 else self.player2

    def with_player(self, is_p1: bool, player: PlayerInfo) -> "MatchState":
        if is_p1:
            return replace(self, player1=player)
        return replace(self, player2=player)

    def with_scores(self, p1_score: int, p2_score: int) -> "MatchState":
        return replace(
            self,
            player1=self.player1.with_score(p1_score),
            player2=self.player2.with_score(p2_score),
        )

    def swapped(self) -> "MatchState":
        return replace(self, player1=self.player2, player2=self.player1)


@dataclass(frozen=True)
class CountryInfo:
    country_id: str
    acronym: str = ""
    display_name: str = ""
    flag_path: str = ""


UNKNOWN_COUNTRY = CountryInfo(country_id="")


class OverlayMetadata:
    """
    Read-only country lookup used when pushing and reading player panels.
    """

    def __init__(self, countries: Optional[Iterable[CountryInfo]] = None) -> None:
        self._countries: Dict[str, CountryInfo] = {}
        for info in countries or ():
            self._countries[info.country_id.upper()] = info

    def countries(self) -> Dict[str, CountryInfo]:
        return dict(self._countries)

    def get_country(self, country_id: Optional[str]) -> CountryInfo:
        key = (country_id or "").strip().upper()
        return self._countries.get(key, UNKNOWN_COUNTRY)

    def resolve_country(
        self, acronym: Optional[str], flag_path: Optional[str] = None
    ) -> str:
        """
        Map an overlay acronym (or, failing that, a flag path) back to a
        country id. Returns "" when nothing matches.
        """
        code = (acronym or "").strip().lower()
        flag = (flag_path or "").strip().lower()

        if code:
            for info in self._countries.values():
                if info.acronym.lower() == code:
                    return info.country_id

        if flag:
            for info in self._countries.values():
                if info.flag_path and info.flag_path.lower() == flag:
                    return info.country_id

        return ""


__all__ = [
    "MatchFormat",
    "PlayerInfo",
    "MatchState",
    "CountryInfo",
    "UNKNOWN_COUNTRY",
    "OverlayMetadata",
]
