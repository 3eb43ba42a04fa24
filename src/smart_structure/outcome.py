"""Normalised result of one remote call (or of a short-circuited action)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

OutcomeKind = Literal["ok", "domain", "transport", "precondition", "busy"]


@dataclass(frozen=True)
class Outcome:
    """Tagged success/failure value.

    ``ok`` is the only field callers need to branch on. ``kind`` tells the
    failure modes apart: ``domain`` (the service answered with a failure
    discriminator), ``transport`` (no usable answer), ``precondition`` (a
    guard stopped the action before any request) and ``busy`` (the same
    action was already in flight).
    """

    ok: bool
    data: Any = None
    message: Optional[str] = None
    kind: OutcomeKind = "ok"
    raw: Any = None

    @classmethod
    def success(cls, data: Any = None, message: Optional[str] = None, raw: Any = None) -> "Outcome":
        return cls(True, data=data, message=message, kind="ok", raw=raw)

    @classmethod
    def failure(cls, message: Optional[str] = None, raw: Any = None) -> "Outcome":
        return cls(False, message=message, kind="domain", raw=raw)

    @classmethod
    def transport_error(cls, message: str) -> "Outcome":
        return cls(False, message=message, kind="transport", raw={"error": message})

    @classmethod
    def precondition(cls, message: str) -> "Outcome":
        return cls(False, message=message, kind="precondition")

    @classmethod
    def busy(cls, message: str) -> "Outcome":
        return cls(False, message=message, kind="busy")

    @property
    def is_transport_error(self) -> bool:
        return self.kind == "transport"

    def __bool__(self) -> bool:
        return self.ok
