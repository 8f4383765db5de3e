from __future__ import annotations

from core.match.models import MatchState
from core.match.queue import MatchQueue


class TournamentState:
    """
    The single current match, the upcoming queue and the live scene name.

    Not synchronized: the dispatcher's caller serializes command submission.
    """

    def __init__(self, initial_match: MatchState, *, current_scene: str = "") -> None:
        self._current_match = self._checked(initial_match)
        self.queue = MatchQueue()
        self.current_scene = current_scene

    @property
    def current_match(self) -> MatchState:
        return self._current_match

    def set_current_match(self, match: MatchState) -> None:
        self._current_match = self._checked(match)

    @staticmethod
    def _checked(match: MatchState) -> MatchState:
        if not isinstance(match, MatchState):
            raise TypeError("current match must be a MatchState")
        return match
