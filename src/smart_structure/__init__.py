# The below lets users run `from smart_structure import Workflow` instead of `from smart_structure.workflow import Workflow`
# Same for the other modules
from smart_structure.api import ApiClient
from smart_structure.config import ClientConfig, GeneralConfig
from smart_structure.models import BuildingForm, Session, SurveyForm, User, WindForm
from smart_structure.notifications import NotificationChannel
from smart_structure.outcome import Outcome
from smart_structure.renderer import render_report, score_class
from smart_structure.state import Stage, WorkflowState
from smart_structure.storage import JsonFileBackend, MemoryBackend, SessionStore
from smart_structure.workflow import Workflow

__all__ = ["ApiClient",
           "ClientConfig",
           "GeneralConfig",
           "BuildingForm",
           "Session",
           "SurveyForm",
           "User",
           "WindForm",
           "NotificationChannel",
           "Outcome",
           "render_report",
           "score_class",
           "Stage",
           "WorkflowState",
           "JsonFileBackend",
           "MemoryBackend",
           "SessionStore",
           "Workflow",
]
