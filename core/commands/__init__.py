from core.commands.base import Command, CommandContext, InlineCommand, MatchCommand
from core.commands.catalog import CommandCatalog
from core.commands.dispatcher import CommandDispatcher, CommandRecord, HistoryEntry
from core.commands.history import RedoCommand, UndoCommand
from core.commands.players import (
    SetPlayerInfoCommand,
    SetPlayerProfileCommand,
    SwapPlayersCommand,
)
from core.commands.queue import LoadNextMatchCommand
from core.commands.scene import SwitchSceneCommand
from core.commands.score import AdjustScoreCommand, ResetMatchCommand

__all__ = [
    "AdjustScoreCommand",
    "Command",
    "CommandCatalog",
    "CommandContext",
    "CommandDispatcher",
    "CommandRecord",
    "HistoryEntry",
    "InlineCommand",
    "LoadNextMatchCommand",
    "MatchCommand",
    "RedoCommand",
    "ResetMatchCommand",
    "SetPlayerInfoCommand",
    "SetPlayerProfileCommand",
    "SwapPlayersCommand",
    "SwitchSceneCommand",
    "UndoCommand",
]
