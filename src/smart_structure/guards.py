"""Precondition checks run before an action may reach the network.

Each guard returns ``None`` when the action may proceed, or the message to
show the user when it may not.
"""
from __future__ import annotations

from typing import Callable, Optional

from .config import GeneralConfig
from .state import Stage, WorkflowState

Guard = Callable[[WorkflowState], Optional[str]]


def require_authenticated(state: WorkflowState) -> Optional[str]:
    if state.stage < Stage.AUTHENTICATED or not state.token:
        return GeneralConfig.MSG_LOGIN_REQUIRED
    return None


def require_survey(explicit_survey_id: Optional[str] = None) -> Guard:
    """Pass when a survey was picked explicitly or one is remembered."""

    def guard(state: WorkflowState) -> Optional[str]:
        if not (explicit_survey_id or state.pointer.survey_id):
            return GeneralConfig.MSG_SURVEY_REQUIRED
        return None

    return guard


def require_building(message: str = GeneralConfig.MSG_BUILDING_REQUIRED) -> Guard:
    def guard(state: WorkflowState) -> Optional[str]:
        if not state.pointer.building_id:
            return message
        return None

    return guard


def require_fields(message: str, *values: Optional[str]) -> Guard:
    """Pass when every value is a non-blank string."""

    def guard(state: WorkflowState) -> Optional[str]:
        if not all(v and str(v).strip() for v in values):
            return message
        return None

    return guard


def check(state: WorkflowState, *guards: Guard) -> Optional[str]:
    """Run *guards* in order and return the first failure message."""
    for guard in guards:
        message = guard(state)
        if message:
            return message
    return None
