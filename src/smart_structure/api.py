from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Mapping, Optional
from urllib.parse import quote

import requests

from .config import ClientConfig
from .outcome import Outcome

logger = logging.getLogger(__name__)

# urllib3 logs every retry at WARNING; keep it to real problems
logging.getLogger("urllib3").setLevel(logging.ERROR)

ReportKind = Literal["disaster", "vastu", "final"]

REPORT_PATHS: Dict[str, str] = {
    "disaster": "analysis/disaster/{building_id}",
    "vastu": "analysis/vastu/{building_id}",
    "final": "analysis/report/{building_id}",
}


def normalise_envelope(payload: Any) -> Outcome:
    """Fold both response envelopes the service uses into one :class:`Outcome`.

    Auth endpoints answer ``{"success": bool, ...}``; resource endpoints
    answer ``{"status": "success" | ..., ...}``. Either way the payload sits
    under ``data`` and a human-readable reason under ``message``.
    """
    if not isinstance(payload, dict):
        return Outcome.transport_error("Malformed response from server")

    if "success" in payload:
        ok = payload.get("success") is True
    elif "status" in payload:
        ok = payload.get("status") == "success"
    else:
        ok = False

    message = payload.get("message")
    if message is not None and not isinstance(message, str):
        message = str(message)

    if ok:
        return Outcome.success(payload.get("data"), message=message, raw=payload)
    return Outcome.failure(message, raw=payload)


class ApiClient:
    """Typed wrapper around the remote analysis service.

    Every public method issues exactly one HTTP request and returns an
    :class:`~smart_structure.outcome.Outcome`; none of them raise on network
    trouble or in-band failure. Success is read from the response envelope,
    never from the HTTP status code alone.

    Parameters
    ----------
    config : ClientConfig, optional
        Base URL, timeout and the pre-built ``requests.Session``.

    Examples
    --------
    >>> api = ApiClient(ClientConfig())
    >>> outcome = api.login("a@x.com", "secret")
    >>> outcome.ok, outcome.data["token"]
    (True, 'eyJ...')
    """

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        self.cfg = config or ClientConfig()
        self.session = self.cfg.session
        self.timeout = self.cfg.timeout

    # ──────────────────────────────────────────────────────────────────────
    # Auth
    # ──────────────────────────────────────────────────────────────────────
    def register(self, email: str, password: str, name: str, role: str) -> Outcome:
        body = {"email": email, "password": password, "name": name, "role": role}
        return self._request("POST", "auth/register", body=body)

    def login(self, email: str, password: str) -> Outcome:
        return self._request("POST", "auth/login", body={"email": email, "password": password})

    # ──────────────────────────────────────────────────────────────────────
    # Resources
    # ──────────────────────────────────────────────────────────────────────
    def list_surveys(self, token: str) -> Outcome:
        return self._request("GET", "land-surveys", token=token)

    def create_survey(self, token: str, survey: Mapping[str, Any]) -> Outcome:
        return self._request("POST", "land-surveys", token=token, body=survey)

    def create_building(self, token: str, building: Mapping[str, Any]) -> Outcome:
        return self._request("POST", "building-inputs", token=token, body=building)

    def add_wind(self, token: str, wind: Mapping[str, Any]) -> Outcome:
        return self._request("POST", "wind", token=token, body=wind)

    # ──────────────────────────────────────────────────────────────────────
    # Analysis & reports
    # POST computes (or recomputes) a report, GET fetches the stored one.
    # ──────────────────────────────────────────────────────────────────────
    def run_disaster_analysis(self, token: str, building_id: str) -> Outcome:
        return self._report("POST", "disaster", token, building_id)

    def get_disaster_report(self, token: str, building_id: str) -> Outcome:
        return self._report("GET", "disaster", token, building_id)

    def run_vastu_analysis(self, token: str, building_id: str) -> Outcome:
        return self._report("POST", "vastu", token, building_id)

    def get_vastu_report(self, token: str, building_id: str) -> Outcome:
        return self._report("GET", "vastu", token, building_id)

    def generate_final_report(self, token: str, building_id: str) -> Outcome:
        return self._report("POST", "final", token, building_id)

    def get_final_report(self, token: str, building_id: str) -> Outcome:
        return self._report("GET", "final", token, building_id)

    def fetch_report(self, kind: ReportKind, token: str, building_id: str) -> Outcome:
        """Fetch a previously computed report of the given *kind*."""
        return self._report("GET", kind, token, building_id)

    # ──────────────────────────────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────────────────────────────
    def _report(self, method: str, kind: str, token: str, building_id: str) -> Outcome:
        try:
            template = REPORT_PATHS[kind]
        except KeyError as exc:
            valid = ", ".join(sorted(REPORT_PATHS))
            raise ValueError(f"Unknown report kind '{kind}'. Valid options are: {valid}") from exc
        path = template.format(building_id=quote(str(building_id), safe=""))
        return self._request(method, path, token=token)

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> Outcome:
        url = self.cfg.url(path)
        headers: Dict[str, str] = {}
        if body is not None:
            headers["Content-Type"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=dict(body) if body is not None else None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return Outcome.transport_error(str(e) or e.__class__.__name__)

        try:
            payload = response.json()
        except ValueError:
            logger.warning(
                "%s %s returned a non-JSON body (HTTP %s)", method, url, response.status_code
            )
            return Outcome.transport_error(
                f"Malformed response from server (HTTP {response.status_code})"
            )

        outcome = normalise_envelope(payload)
        if not outcome.ok and not outcome.is_transport_error:
            logger.info(
                "%s %s rejected (HTTP %s): %s",
                method,
                url,
                response.status_code,
                outcome.message or "no message",
            )
        return outcome
