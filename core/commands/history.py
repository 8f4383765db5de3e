"""
Meta commands that replay history instead of changing state themselves.

They are never recorded, otherwise an undo would push itself onto the stack
it is unwinding.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.commands.base import Command, CommandContext
from shared.runtime.result import Result

if TYPE_CHECKING:
    from core.commands.dispatcher import CommandDispatcher


class UndoCommand(Command):
    record_in_history = False

    def __init__(self, dispatcher: "CommandDispatcher"):
        self._dispatcher = dispatcher

    @property
    def description(self) -> str:
        return "Undo"

    async def execute(self, context: CommandContext) -> Result:
        return await self._dispatcher.undo(context)

    async def undo(self, context: CommandContext) -> Result:
        return await self._dispatcher.redo(context)


class RedoCommand(Command):
    record_in_history = False

    def __init__(self, dispatcher: "CommandDispatcher"):
        self._dispatcher = dispatcher

    @property
    def description(self) -> str:
        return "Redo"

    async def execute(self, context: CommandContext) -> Result:
        return await self._dispatcher.redo(context)

    async def undo(self, context: CommandContext) -> Result:
        return await self._dispatcher.undo(context)
