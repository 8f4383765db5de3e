"""
Command dispatcher.

Runs commands against a CommandContext and owns the undo/redo history.

History is kept as an arena of CommandRecord objects keyed by a sequence id;
the undo and redo stacks only hold ids. A record is released from the arena
once it can no longer be reached from either stack (i.e. when a new command
clears the redo chain).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional

from core.commands.base import Command, CommandContext
from shared.logging.logger import get_logger
from shared.runtime.result import Result

log = get_logger("core.commands.dispatcher")

DEFAULT_JOURNAL_SIZE = 200


@dataclass(frozen=True)
class CommandRecord:
    record_id: int
    command: Command


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: datetime
    action: str  # "do" | "undo" | "redo"
    description: str
    ok: bool
    message: str


class CommandDispatcher:
    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        journal_size: int = DEFAULT_JOURNAL_SIZE,
    ):
        self._log = logger or log
        self._records: Dict[int, CommandRecord] = {}
        self._undo: List[int] = []
        self._redo: List[int] = []
        self._next_id = 1
        self._journal: Deque[HistoryEntry] = deque(maxlen=max(1, journal_size))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_stack(self) -> List[Command]:
        """Undoable commands, most recent first."""
        return [self._records[rid].command for rid in reversed(self._undo)]

    @property
    def redo_stack(self) -> List[Command]:
        """Redoable commands, most recently undone first."""
        return [self._records[rid].command for rid in reversed(self._redo)]

    @property
    def journal(self) -> List[HistoryEntry]:
        return list(self._journal)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self._records.clear()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def execute(self, command: Command, context: CommandContext) -> Result:
        if command is None:
            raise ValueError("command is required")

        try:
            result = await command.execute(context)
        except BaseException as e:
            self._report_raised("do", command, e)
            raise
        self._report("do", command, result)

        if result.ok and command.record_in_history:
            self._drop_redo_chain()
            self._undo.append(self._store(command))

        return result

    async def undo(self, context: CommandContext) -> Result:
        if not self._undo:
            return Result.fail("Nothing to undo.")

        rid = self._undo.pop()
        command = self._records[rid].command
        try:
            result = await command.undo(context)
        except BaseException as e:
            self._undo.append(rid)
            self._report_raised("undo", command, e)
            raise

        self._report("undo", command, result)
        if result.ok:
            self._redo.append(rid)
        else:
            self._undo.append(rid)
        return result

    async def redo(self, context: CommandContext) -> Result:
        if not self._redo:
            return Result.fail("Nothing to redo.")

        rid = self._redo.pop()
        command = self._records[rid].command
        try:
            result = await command.execute(context)
        except BaseException as e:
            self._redo.append(rid)
            self._report_raised("redo", command, e)
            raise

        self._report("redo", command, result)
        if result.ok:
            self._undo.append(rid)
        else:
            self._redo.append(rid)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _store(self, command: Command) -> int:
        rid = self._next_id
        self._next_id += 1
        self._records[rid] = CommandRecord(rid, command)
        return rid

    def _drop_redo_chain(self) -> None:
        for rid in self._redo:
            self._records.pop(rid, None)
        self._redo.clear()

    def _report(self, action: str, command: Command, result: Result) -> None:
        description = command.description
        tag = action.upper()
        if result.ok:
            self._log.info(f"CMD {tag}: {description} -> {result.message}")
        else:
            self._log.warning(f"CMD {tag} FAILED: {description} -> {result.message}")

        self._record(action, description, result.ok, result.message)

    def _report_raised(self, action: str, command: Command, error: BaseException) -> None:
        description = command.description
        message = f"{type(error).__name__}: {error}"
        self._log.warning(f"CMD {action.upper()} FAILED: {description} -> {message}")
        self._record(action, description, False, message)

    def _record(self, action: str, description: str, ok: bool, message: str) -> None:
        self._journal.append(
            HistoryEntry(
                timestamp=datetime.now(timezone.utc),
                action=action,
                description=description,
                ok=ok,
                message=message,
            )
        )


__all__ = [
    "CommandDispatcher",
    "CommandRecord",
    "HistoryEntry",
]
