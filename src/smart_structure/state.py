"""In-memory workflow state, derived from and synced back to the session store."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from .models import Session, SurveyRecord
from .renderer import ReportView
from .storage import SessionStore


class Stage(IntEnum):
    """Workflow steps, in the order a user reaches them."""

    UNAUTHENTICATED = 0
    AUTHENTICATED = 1
    SURVEY_CHOSEN = 2
    BUILDING_CREATED = 3
    WIND_ADDED = 4
    ANALYSIS_RAN = 5
    REPORT_GENERATED = 6


@dataclass
class WorkflowPointer:
    survey_id: Optional[str] = None
    building_id: Optional[str] = None


@dataclass
class ViewState:
    """What a front end should currently show."""

    section: str = "auth"
    auth_tab: str = "login"
    login_email: str = ""
    user_info_visible: bool = False
    report_view: Optional[ReportView] = None
    console: Optional[Any] = None


@dataclass
class WorkflowState:
    """Single owner of the client's mutable state.

    Only :class:`~smart_structure.workflow.Workflow` mutates an instance;
    front ends read it.
    """

    session: Optional[Session] = None
    pointer: WorkflowPointer = field(default_factory=WorkflowPointer)
    surveys: List[SurveyRecord] = field(default_factory=list)
    current_report: Optional[Dict[str, Any]] = None
    current_report_kind: Optional[str] = None
    stage: Stage = Stage.UNAUTHENTICATED
    view: ViewState = field(default_factory=ViewState)

    @classmethod
    def from_store(cls, store: SessionStore) -> "WorkflowState":
        """Rebuild state after a restart.

        Stages past ``BUILDING_CREATED`` are not persisted, so a reload
        resumes at the furthest step the stored pointers prove.
        """
        state = cls(
            session=store.load(),
            pointer=WorkflowPointer(survey_id=store.survey_id, building_id=store.building_id),
        )
        state.stage = derive_stage(state)
        return state

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    @property
    def user_name(self) -> Optional[str]:
        return self.session.user.name if self.session else None

    def advance(self, stage: Stage) -> None:
        """Move forward to *stage*; never moves backwards."""
        if stage > self.stage:
            self.stage = stage

    def reset(self) -> None:
        """Back to a fresh, unauthenticated state."""
        self.session = None
        self.pointer = WorkflowPointer()
        self.surveys = []
        self.current_report = None
        self.current_report_kind = None
        self.stage = Stage.UNAUTHENTICATED
        self.view = ViewState()


def derive_stage(state: WorkflowState) -> Stage:
    if state.session is None:
        return Stage.UNAUTHENTICATED
    if state.pointer.building_id:
        return Stage.BUILDING_CREATED
    if state.pointer.survey_id:
        return Stage.SURVEY_CHOSEN
    return Stage.AUTHENTICATED
