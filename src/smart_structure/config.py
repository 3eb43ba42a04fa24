"""
Central configuration for smart_structure. This module contains two classes:

* `GeneralConfig` – constants that are useful package-wide (storage keys,
  user-facing messages, score bands)
* `ClientConfig` – network, timeout, retry and persistence settings that the
  `ApiClient` and `Workflow` classes import and use internally

Keeping these here lets the other modules stay lean and readable.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import requests
from dotenv import load_dotenv
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Package-wide constants
# --------------------------------------------------------------------------- #
class GeneralConfig:
    """Constants that may be reused by other modules in the package."""

    # Placeholder for a field the service did not return
    NOT_FOUND_TEXT: str = "N/A"

    # Keys used in the persistent store
    KEY_TOKEN = "token"
    KEY_REFRESH_TOKEN = "refreshToken"
    KEY_USER = "user"
    KEY_SURVEY_ID = "surveyId"
    KEY_BUILDING_ID = "buildingId"
    STORE_KEYS = (KEY_TOKEN, KEY_REFRESH_TOKEN, KEY_USER, KEY_SURVEY_ID, KEY_BUILDING_ID)

    # Score banding, highest threshold first
    SCORE_BANDS: Tuple[Tuple[float, str], ...] = (
        (80.0, "excellent"),
        (60.0, "good"),
        (40.0, "moderate"),
    )
    SCORE_FLOOR_BAND = "poor"

    # Notification severities
    SEVERITIES = ("success", "error", "warning", "info")

    # Sections of the front end, in workflow order
    SECTIONS = ("auth", "survey", "building", "wind", "analysis", "reports")
    AUTH_TABS = ("login", "register")

    # Guard messages
    MSG_LOGIN_REQUIRED = "Please login first"
    MSG_SECTION_LOGIN_REQUIRED = "Please login first to access this section"
    MSG_SURVEY_REQUIRED = "Please select a land survey first"
    MSG_BUILDING_REQUIRED = "Please create a building input first"
    MSG_NO_BUILDING_SELECTED = "No building selected"
    MSG_REGISTER_FIELDS = "Please fill all fields"
    MSG_LOGIN_FIELDS = "Please enter email and password"
    MSG_STALE_SURVEY = "The selected land survey no longer exists. Please select another."

    NETWORK_ERROR_PREFIX = "Network error: "


# --------------------------------------------------------------------------- #
# Client configuration & helpers
# --------------------------------------------------------------------------- #
DEFAULT_BASE_URL = "https://smart-structure.onrender.com/api/v1"
DEFAULT_STATE_PATH = Path.home() / ".cache" / "smart_structure" / "session.json"

ENV_PREFIX = "SMART_STRUCTURE_"


@dataclass
class ClientConfig:
    """
    All knobs that influence network I/O and local persistence.

    Transport retries only cover connection failures on idempotent methods;
    a POST is never replayed and an in-band failure is never retried.
    """

    base_url:                str              = DEFAULT_BASE_URL
    timeout:                 float            = 30.0
    retries_connect:         int              = 2
    backoff_factor:          float            = 0.5
    notification_lifetime:   float            = 3.0
    state_path:              Optional[Path]   = None
    verify_persisted_survey: bool             = False

    # Runtime attributes
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = (self.base_url or "").strip().rstrip("/")
        if self.state_path is not None:
            self.state_path = Path(self.state_path)
        self._validate()
        self.session = self._build_session()

    # ----------------------------------------------------------------------- #
    # Helpers
    # ----------------------------------------------------------------------- #
    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """Build a config from ``SMART_STRUCTURE_*`` environment variables.

        A ``.env`` file in the working directory is honoured. Keyword
        arguments take precedence over the environment.
        """
        load_dotenv()
        env = {
            "base_url": os.getenv(f"{ENV_PREFIX}API_URL"),
            "timeout": os.getenv(f"{ENV_PREFIX}TIMEOUT"),
            "retries_connect": os.getenv(f"{ENV_PREFIX}RETRIES"),
            "notification_lifetime": os.getenv(f"{ENV_PREFIX}NOTIFICATION_LIFETIME"),
            "state_path": os.getenv(f"{ENV_PREFIX}STATE_PATH"),
            "verify_persisted_survey": os.getenv(f"{ENV_PREFIX}VERIFY_SURVEY"),
        }
        kwargs = {}
        try:
            if env["base_url"]:
                kwargs["base_url"] = env["base_url"]
            if env["timeout"]:
                kwargs["timeout"] = float(env["timeout"])
            if env["retries_connect"]:
                kwargs["retries_connect"] = int(env["retries_connect"])
            if env["notification_lifetime"]:
                kwargs["notification_lifetime"] = float(env["notification_lifetime"])
        except ValueError as exc:
            raise ValueError(f"Invalid {ENV_PREFIX}* environment value: {exc}") from exc
        if env["state_path"]:
            kwargs["state_path"] = Path(env["state_path"]).expanduser()
        if env["verify_persisted_survey"]:
            kwargs["verify_persisted_survey"] = env["verify_persisted_survey"].strip().lower() in {
                "1",
                "true",
                "yes",
            }
        kwargs.update(overrides)
        return cls(**kwargs)

    def url(self, path: str) -> str:
        """Join *path* onto the configured base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def resolved_state_path(self) -> Path:
        return self.state_path or DEFAULT_STATE_PATH

    def _validate(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got '{self.base_url}'")
        if self.timeout is None or self.timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds")
        if self.retries_connect < 0:
            raise ValueError("retries_connect cannot be negative")
        if self.notification_lifetime <= 0:
            raise ValueError("notification_lifetime must be positive")

    def _build_session(self) -> requests.Session:
        """Create and return a configured `requests.Session` object."""
        session = requests.Session()
        retries = Retry(
            total=self.retries_connect,
            connect=self.retries_connect,
            read=0,
            status=0,
            backoff_factor=self.backoff_factor,
            allowed_methods=frozenset({"GET", "HEAD"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"Accept": "application/json"})
        return session
