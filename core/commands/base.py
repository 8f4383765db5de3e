"""
Command abstraction.

A command is one operator intent with its own compensating action. Commands
that replace the current match capture the "before" snapshot themselves, so
undo data lives exactly as long as the command object on the history stack.

Local state is changed first and the overlay is pushed second. When the push
fails (or raises) the local change is rolled back, leaving the state as it
was before the call so the same command can be retried or undone.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from core.match.models import MatchState
from core.match.state import TournamentState
from shared.runtime.result import Result

if TYPE_CHECKING:
    from services.obs.gateway import ObsGateway
    from services.overlay.sync import OverlaySync
    from shared.config.automation import AutomationConfig


@dataclass
class CommandContext:
    state: TournamentState
    gateway: "ObsGateway"
    overlay: "OverlaySync"
    logger: logging.Logger
    config: "AutomationConfig"


class Command(ABC):
    """Base class for all dispatchable operator actions."""

    record_in_history: bool = True

    @property
    @abstractmethod
    def description(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def execute(self, context: CommandContext) -> Result:
        raise NotImplementedError

    @abstractmethod
    async def undo(self, context: CommandContext) -> Result:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.description!r}>"


MatchPush = Callable[[MatchState], Awaitable[Result]]


class MatchCommand(Command):
    """
    Shared plumbing for commands that replace the current MatchState.

    Subclasses set ``_before`` during execute and describe the push with
    ``_replace_match``; undo restores ``_before`` through the same path.
    """

    no_snapshot_message = "No previous match snapshot available."
    restored_message = "Match restored."

    def __init__(self) -> None:
        self._before: Optional[MatchState] = None

    async def _replace_match(
        self,
        context: CommandContext,
        match: MatchState,
        push: MatchPush,
        *,
        ok_message: str,
        local_only_message: str,
    ) -> Result:
        previous = context.state.current_match
        context.state.set_current_match(match)
        try:
            pushed = await push(match)
        except BaseException:
            context.state.set_current_match(previous)
            raise

        if not pushed.ok:
            context.state.set_current_match(previous)
            return pushed.with_message(f"{local_only_message} {pushed.message}".strip())

        return Result.success(match, ok_message)

    @abstractmethod
    async def _push(self, context: CommandContext, match: MatchState) -> Result:
        """Overlay push used by both execute and undo."""
        raise NotImplementedError

    async def undo(self, context: CommandContext) -> Result:
        if self._before is None:
            return Result.fail(self.no_snapshot_message)

        return await self._replace_match(
            context,
            self._before,
            partial(self._push, context),
            ok_message=self.restored_message,
            local_only_message="Restore rolled back: overlay update failed.",
        )


class InlineCommand(Command):
    """Command assembled from coroutine callables (ad-hoc bindings)."""

    def __init__(
        self,
        description: str,
        execute: Callable[[CommandContext], Awaitable[Result]],
        undo: Optional[Callable[[CommandContext], Awaitable[Result]]] = None,
        *,
        record_in_history: bool = True,
    ) -> None:
        if execute is None:
            raise ValueError("execute callable is required")
        self._description = description
        self._execute = execute
        self._undo = undo
        self.record_in_history = record_in_history

    @property
    def description(self) -> str:
        return self._description

    async def execute(self, context: CommandContext) -> Result:
        return await self._execute(context)

    async def undo(self, context: CommandContext) -> Result:
        if self._undo is None:
            return Result.fail("Undo not implemented.")
        return await self._undo(context)


__all__ = [
    "Command",
    "CommandContext",
    "InlineCommand",
    "MatchCommand",
]
