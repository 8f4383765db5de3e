from __future__ import annotations

from typing import Optional

from core.commands.base import Command, CommandContext
from shared.runtime.result import Result


class SwitchSceneCommand(Command):
    """
    Switch the program scene.

    Restoring a scene means issuing another switch, so undo re-switches to the
    scene captured before execute rather than replaying any local diff.
    """

    def __init__(self, scene: str):
        self.scene = scene
        self._previous: Optional[str] = None

    @property
    def description(self) -> str:
        return f"Switch scene to '{self.scene}'"

    async def execute(self, context: CommandContext) -> Result:
        self._previous = context.state.current_scene
        return await self._switch(context, self.scene, f"Scene set to '{self.scene}'.")

    async def undo(self, context: CommandContext) -> Result:
        if not self._previous or not self._previous.strip():
            return Result.fail("Previous scene not available.")
        return await self._switch(
            context, self._previous, f"Scene restored to '{self._previous}'."
        )

    async def _switch(self, context: CommandContext, scene: str, ok_message: str) -> Result:
        state = context.state
        before = state.current_scene
        state.current_scene = scene
        try:
            switched = await context.gateway.switch_scene(scene)
        except BaseException:
            state.current_scene = before
            raise

        if not switched.ok:
            state.current_scene = before
            return switched.with_message(f"Failed to switch to '{scene}': {switched.message}")

        return Result.success(scene, ok_message)
