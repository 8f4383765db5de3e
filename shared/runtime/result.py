"""
Result values shared by the OBS gateway, overlay sync and command engine.

A Result is the only way failures travel between layers in lenient mode.
Codes are assigned by the gateway; higher layers forward or wrap them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class ResultCode(str, Enum):
    OK = "OK"
    INVALID_ARGUMENT = "InvalidArgument"
    NOT_CONNECTED = "NotConnected"
    NOT_FOUND = "NotFound"
    TYPE_MISMATCH = "TypeMismatch"
    TIMEOUT = "Timeout"
    OBS_ERROR = "ObsError"


@dataclass(frozen=True)
class Result:
    ok: bool
    code: Optional[ResultCode] = None
    message: str = ""
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Any = None, message: str = "OK") -> "Result":
        return cls(ok=True, code=ResultCode.OK, message=message, value=value)

    @classmethod
    def fail(
        cls,
        message: str,
        code: Optional[ResultCode] = None,
        error: Optional[BaseException] = None,
    ) -> "Result":
        return cls(ok=False, code=code, message=message, error=error)

    def with_message(self, message: str) -> "Result":
        """Same outcome, code and error with a caller-facing message."""
        return replace(self, message=message)


__all__ = ["Result", "ResultCode"]
