from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .api import ApiClient
from .config import ClientConfig, GeneralConfig
from .guards import check, require_authenticated, require_building, require_fields, require_survey
from .models import BuildingForm, Session, SurveyForm, SurveyRecord, WindForm
from .notifications import NotificationChannel
from .outcome import Outcome
from .renderer import SurveyOption, render_report, survey_options
from .state import Stage, WorkflowState, derive_stage
from .storage import SessionStore

logger = logging.getLogger(__name__)


ANALYSIS_MESSAGES: Dict[str, tuple] = {
    "disaster": ("Running disaster analysis...", "Disaster analysis completed!"),
    "vastu": ("Running Vastu analysis...", "Vastu analysis completed!"),
}

REPORT_NOT_FOUND: Dict[str, str] = {
    "disaster": "Report not found. Run analysis first.",
    "vastu": "Report not found. Run analysis first.",
    "final": "Report not found. Generate report first.",
}


def single_flight(action: str) -> Callable:
    """Reject a second call to *action* while the first is still running."""

    def decorator(method: Callable[..., Outcome]) -> Callable[..., Outcome]:
        @functools.wraps(method)
        def wrapper(self: "Workflow", *args: Any, **kwargs: Any) -> Outcome:
            with self._flight_lock:
                busy = action in self._in_flight
                if not busy:
                    self._in_flight.add(action)
            if busy:
                message = f"Please wait, '{action.replace('_', ' ')}' is already in progress"
                self.notifier.warning(message)
                return Outcome.busy(message)
            try:
                return method(self, *args, **kwargs)
            finally:
                with self._flight_lock:
                    self._in_flight.discard(action)

        return wrapper

    return decorator


class Workflow:
    """Drives the survey → building → wind → analysis → report chain.

    The controller owns a :class:`~smart_structure.state.WorkflowState` and is
    the only writer of it and of the :class:`SessionStore`. Every action is a
    plain method that:

    1. runs its guards, short-circuiting with one notification and no
       request when a precondition fails;
    2. issues a single request through the :class:`ApiClient`;
    3. on success, updates the state (writing pointers through to the store)
       and reports the outcome on the :class:`NotificationChannel`.

    Actions return the :class:`Outcome` and never raise past themselves.

    Parameters
    ----------
    api : ApiClient, optional
        Gateway to the remote service.
    store : SessionStore, optional
        Durable storage; defaults to an in-memory store.
    notifier : NotificationChannel, optional
        Feedback sink; defaults to one using the configured lifetime.
    config : ClientConfig, optional
        Defaults to the API client's config.

    Examples
    --------
    >>> flow = Workflow.from_config(ClientConfig.from_env())
    >>> flow.start()
    >>> flow.login("a@x.com", "secret")
    >>> flow.create_survey(SurveyForm(...))
    >>> flow.create_building(BuildingForm(...))
    """

    def __init__(
        self,
        api: Optional[ApiClient] = None,
        store: Optional[SessionStore] = None,
        notifier: Optional[NotificationChannel] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self.cfg = config or (api.cfg if api is not None else ClientConfig())
        self.api = api or ApiClient(self.cfg)
        self.store = store or SessionStore()
        self.notifier = notifier or NotificationChannel(lifetime=self.cfg.notification_lifetime)
        self.state = WorkflowState.from_store(self.store)

        self._in_flight: set[str] = set()
        self._flight_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[ClientConfig] = None) -> "Workflow":
        """Build a workflow persisting to the config's state file."""
        cfg = config or ClientConfig.from_env()
        return cls(
            api=ApiClient(cfg),
            store=SessionStore.at_path(cfg.resolved_state_path()),
            config=cfg,
        )

    # ──────────────────────────────────────────────────────────────────────
    # Navigation
    # ──────────────────────────────────────────────────────────────────────
    def start(self) -> Outcome:
        """Resume after a restart: greet a stored user and refresh the dropdown."""
        if self.state.is_authenticated:
            self._show_logged_in()
        logger.info("Workflow resumed at stage %s", self.state.stage.name)
        return Outcome.success(self.state.stage)

    def show_section(self, name: str) -> str:
        if name not in GeneralConfig.SECTIONS:
            raise ValueError(
                f"Unknown section '{name}'. Valid options are: {', '.join(GeneralConfig.SECTIONS)}"
            )
        if name != "auth" and not self.state.is_authenticated:
            self.notifier.error(GeneralConfig.MSG_SECTION_LOGIN_REQUIRED)
            name = "auth"
        self.state.view.section = name
        return name

    def switch_tab(self, tab: str) -> str:
        if tab not in GeneralConfig.AUTH_TABS:
            raise ValueError(f"Unknown tab '{tab}'. Valid options are: login, register")
        self.state.view.auth_tab = tab
        return tab

    def clear_console(self) -> None:
        self.state.view.console = None

    @property
    def survey_options(self) -> List[SurveyOption]:
        return survey_options(self.state.surveys, self.state.pointer.survey_id)

    # ──────────────────────────────────────────────────────────────────────
    # Authentication
    # ──────────────────────────────────────────────────────────────────────
    @single_flight("register")
    def register(self, name: str, email: str, password: str, role: str = "owner") -> Outcome:
        failed = check(
            self.state,
            require_fields(GeneralConfig.MSG_REGISTER_FIELDS, name, email, password),
        )
        if failed:
            return self._precondition(failed)

        outcome = self._console(self.api.register(email, password, name, role))
        if not outcome.ok:
            return self._report_failure(outcome, "Registration failed")

        self.notifier.success("Registration successful! Please login.")
        self.switch_tab("login")
        self.state.view.login_email = email
        return outcome

    @single_flight("login")
    def login(self, email: str, password: str) -> Outcome:
        failed = check(self.state, require_fields(GeneralConfig.MSG_LOGIN_FIELDS, email, password))
        if failed:
            return self._precondition(failed)

        outcome = self._console(self.api.login(email, password))
        data = outcome.data if isinstance(outcome.data, dict) else {}
        if not outcome.ok or not data.get("token"):
            return self._reject(outcome, "Login failed")

        try:
            session = Session(
                access_token=str(data["token"]),
                refresh_token=str(data.get("refreshToken") or ""),
                user=data.get("user"),
            )
        except ValidationError as exc:
            logger.error("Login response carried an unusable user profile: %s", exc)
            return self._report_failure(Outcome.failure(raw=outcome.raw), "Login failed")

        self._persist(lambda: self.store.save(session))
        self.state.session = session
        self.state.stage = derive_stage(self.state)
        self._show_logged_in()
        self.show_section("survey")
        return outcome

    def logout(self) -> Outcome:
        """Forget everything, in memory and on disk, in one step."""
        try:
            self.store.clear()
        except OSError as exc:
            logger.error("Could not clear the session store: %s", exc)
            self.notifier.error("Logout failed: saved session could not be cleared")
            return Outcome.failure(str(exc))

        self.state.reset()
        self.notifier.info("Logged out successfully")
        return Outcome.success()

    # ──────────────────────────────────────────────────────────────────────
    # Land surveys
    # ──────────────────────────────────────────────────────────────────────
    @single_flight("create_survey")
    def create_survey(self, survey: SurveyForm) -> Outcome:
        failed = check(self.state, require_authenticated)
        if failed:
            return self._precondition(failed)

        outcome = self._console(self.api.create_survey(self.state.token, survey.to_payload()))
        record = self._parse_survey(outcome.data) if outcome.ok else None
        if record is None:
            return self._reject(outcome, "Failed to create survey")

        self.state.surveys = [s for s in self.state.surveys if s.id != record.id] + [record]
        self._set_survey(record.id)
        self.notifier.success("Land survey created successfully!")
        return outcome

    @single_flight("load_surveys")
    def load_surveys(self) -> Outcome:
        failed = check(self.state, require_authenticated)
        if failed:
            return self._precondition(failed)

        outcome = self._console(self.api.list_surveys(self.state.token))
        if not outcome.ok or not isinstance(outcome.data, list):
            if outcome.is_transport_error:
                self.notifier.error("Failed to load surveys")
                return outcome
            return self._reject(outcome, "Failed to load surveys")

        self.state.surveys = self._parse_surveys(outcome.data)
        self.notifier.success("Surveys loaded successfully")
        return outcome

    @single_flight("refresh_survey_options")
    def refresh_survey_options(self) -> Outcome:
        """Quietly refresh the cached surveys that back the dropdown."""
        if not self.state.is_authenticated:
            return Outcome.precondition(GeneralConfig.MSG_LOGIN_REQUIRED)

        outcome = self.api.list_surveys(self.state.token)
        if outcome.ok and isinstance(outcome.data, list):
            self.state.surveys = self._parse_surveys(outcome.data)
        else:
            logger.error("Failed to load surveys into dropdown: %s", outcome.message)
        return outcome

    def select_survey(self, survey_id: str) -> Outcome:
        failed = check(
            self.state,
            require_authenticated,
            require_fields(GeneralConfig.MSG_SURVEY_REQUIRED, survey_id),
        )
        if failed:
            return self._precondition(failed)

        self._set_survey(survey_id)
        self.notifier.success("Survey selected")
        return Outcome.success(survey_id)

    # ──────────────────────────────────────────────────────────────────────
    # Building input & wind
    # ──────────────────────────────────────────────────────────────────────
    @single_flight("create_building")
    def create_building(self, building: BuildingForm, survey_id: Optional[str] = None) -> Outcome:
        """Create a building input on *survey_id*, or on the remembered survey.

        An explicit *survey_id* (a dropdown choice) wins over the remembered
        one. The remembered id is trusted as-is unless
        ``verify_persisted_survey`` is enabled.
        """
        failed = check(self.state, require_authenticated, require_survey(survey_id))
        if failed:
            return self._precondition(failed)

        selected = survey_id or self.state.pointer.survey_id
        if not survey_id and self.cfg.verify_persisted_survey:
            verified = self._verify_survey(selected)
            if not verified.ok:
                return verified

        payload = {"landSurveyId": selected, **building.to_payload()}
        outcome = self._console(self.api.create_building(self.state.token, payload))
        data = outcome.data if isinstance(outcome.data, dict) else {}
        if not outcome.ok or not data.get("id"):
            return self._reject(outcome, "Failed to create building input")

        if selected != self.state.pointer.survey_id:
            self._set_survey(selected)
        self.state.pointer.building_id = str(data["id"])
        self._persist(lambda: setattr(self.store, "building_id", self.state.pointer.building_id))
        self.state.current_report = None
        self.state.current_report_kind = None
        self.state.stage = Stage.BUILDING_CREATED
        self.notifier.success("Building input created successfully!")
        self.show_section("wind")
        return outcome

    @single_flight("add_wind")
    def add_wind(self, wind: WindForm) -> Outcome:
        failed = check(self.state, require_authenticated, require_building())
        if failed:
            return self._precondition(failed)

        payload = {"buildingInputId": self.state.pointer.building_id, **wind.to_payload()}
        outcome = self._console(self.api.add_wind(self.state.token, payload))
        if not outcome.ok:
            return self._report_failure(outcome, "Failed to add wind data")

        self.state.advance(Stage.WIND_ADDED)
        self.notifier.success("Wind data added successfully!")
        self.show_section("analysis")
        return outcome

    # ──────────────────────────────────────────────────────────────────────
    # Analysis & reports
    # ──────────────────────────────────────────────────────────────────────
    @single_flight("run_disaster")
    def run_disaster(self) -> Outcome:
        return self._run_analysis("disaster", self.api.run_disaster_analysis)

    @single_flight("run_vastu")
    def run_vastu(self) -> Outcome:
        return self._run_analysis("vastu", self.api.run_vastu_analysis)

    @single_flight("generate_report")
    def generate_report(self) -> Outcome:
        failed = check(self.state, require_authenticated, require_building())
        if failed:
            return self._precondition(failed)

        self.notifier.info("Generating final report...")
        outcome = self._console(
            self.api.generate_final_report(self.state.token, self.state.pointer.building_id)
        )
        if not outcome.ok:
            return self._report_failure(outcome, "Report generation failed")

        self._keep_report("final", outcome.data)
        self.state.advance(Stage.REPORT_GENERATED)
        self.notifier.success("Final report generated!")
        self.show_section("reports")
        self._display("final", outcome.data)
        return outcome

    @single_flight("view_disaster_report")
    def view_disaster_report(self) -> Outcome:
        return self._view_report("disaster")

    @single_flight("view_vastu_report")
    def view_vastu_report(self) -> Outcome:
        return self._view_report("vastu")

    @single_flight("view_final_report")
    def view_final_report(self) -> Outcome:
        return self._view_report("final")

    # ──────────────────────────────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────────────────────────────
    def _run_analysis(self, kind: str, call: Callable[[str, str], Outcome]) -> Outcome:
        failed = check(self.state, require_authenticated, require_building())
        if failed:
            return self._precondition(failed)

        running, completed = ANALYSIS_MESSAGES[kind]
        self.notifier.info(running)
        outcome = self._console(call(self.state.token, self.state.pointer.building_id))
        if not outcome.ok:
            return self._report_failure(outcome, "Analysis failed")

        self._keep_report(kind, outcome.data)
        self.state.advance(Stage.ANALYSIS_RAN)
        self.notifier.success(completed)
        return outcome

    def _view_report(self, kind: str) -> Outcome:
        failed = check(
            self.state,
            require_authenticated,
            require_building(GeneralConfig.MSG_NO_BUILDING_SELECTED),
        )
        if failed:
            return self._precondition(failed)

        outcome = self._console(
            self.api.fetch_report(kind, self.state.token, self.state.pointer.building_id)
        )
        if outcome.is_transport_error:
            self.notifier.error("Failed to load report")
            return outcome
        if not outcome.ok:
            self.notifier.warning(REPORT_NOT_FOUND[kind])
            return outcome

        self._keep_report(kind, outcome.data)
        self.show_section("reports")
        self._display(kind, outcome.data)
        return outcome

    def _keep_report(self, kind: str, data: Any) -> None:
        self.state.current_report = data if isinstance(data, dict) else None
        self.state.current_report_kind = kind

    def _display(self, kind: str, data: Any) -> bool:
        try:
            self.state.view.report_view = render_report(kind, data)
        except ValidationError as exc:
            logger.error("Could not render %s report: %s", kind, exc)
            self.notifier.error("Report received but could not be displayed")
            return False
        return True

    def _verify_survey(self, survey_id: str) -> Outcome:
        outcome = self.api.list_surveys(self.state.token)
        if not outcome.ok or not isinstance(outcome.data, list):
            return self._reject(outcome, "Could not verify the selected land survey")

        self.state.surveys = self._parse_surveys(outcome.data)
        if any(s.id == survey_id for s in self.state.surveys):
            return outcome

        logger.info("Remembered survey %s no longer exists; clearing it", survey_id)
        self.state.pointer.survey_id = None
        self._persist(lambda: setattr(self.store, "survey_id", None))
        return self._precondition(GeneralConfig.MSG_STALE_SURVEY)

    def _set_survey(self, survey_id: str) -> None:
        self.state.pointer.survey_id = survey_id
        self._persist(lambda: setattr(self.store, "survey_id", survey_id))
        self.state.advance(Stage.SURVEY_CHOSEN)

    def _show_logged_in(self) -> None:
        self.state.view.user_info_visible = True
        self.notifier.success(f"Welcome back, {self.state.user_name}!")
        self.refresh_survey_options()

    def _persist(self, write: Callable[[], None]) -> None:
        """Write through to the store; a local disk failure must not undo a remote success."""
        try:
            write()
        except OSError as exc:
            logger.error("Could not persist workflow progress: %s", exc)
            self.notifier.warning("Progress could not be saved locally")

    def _console(self, outcome: Outcome) -> Outcome:
        self.state.view.console = outcome.raw
        return outcome

    def _precondition(self, message: str) -> Outcome:
        self.notifier.error(message)
        return Outcome.precondition(message)

    def _reject(self, outcome: Outcome, fallback: str) -> Outcome:
        """Report a response the action cannot use; an ok envelope becomes a failure."""
        if outcome.ok:
            logger.warning("Unusable success response: %s", outcome.raw)
            outcome = Outcome.failure(fallback, raw=outcome.raw)
        return self._report_failure(outcome, fallback)

    def _report_failure(self, outcome: Outcome, fallback: str) -> Outcome:
        if outcome.is_transport_error:
            self.notifier.error(f"{GeneralConfig.NETWORK_ERROR_PREFIX}{outcome.message}")
        else:
            self.notifier.error(outcome.message or fallback)
        return outcome

    @staticmethod
    def _parse_survey(data: Any) -> Optional[SurveyRecord]:
        if not isinstance(data, dict):
            return None
        try:
            return SurveyRecord.model_validate(data)
        except ValidationError as exc:
            logger.warning("Skipping malformed survey record: %s", exc)
            return None

    @classmethod
    def _parse_surveys(cls, items: List[Any]) -> List[SurveyRecord]:
        parsed = (cls._parse_survey(item) for item in items)
        return [s for s in parsed if s is not None]
