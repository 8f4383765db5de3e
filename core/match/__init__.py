"""
Match domain package.

Immutable match/player values, the upcoming-match queue and the tournament
state holder that commands mutate.
"""

from .models import (
    UNKNOWN_COUNTRY,
    CountryInfo,
    MatchFormat,
    MatchState,
    OverlayMetadata,
    PlayerInfo,
)
from .queue import MatchQueue
from .state import TournamentState

__all__ = [
    "UNKNOWN_COUNTRY",
    "CountryInfo",
    "MatchFormat",
    "MatchState",
    "OverlayMetadata",
    "PlayerInfo",
    "MatchQueue",
    "TournamentState",
]
