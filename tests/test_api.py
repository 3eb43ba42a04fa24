import pytest
import requests
from smart_structure.api import normalise_envelope


@pytest.mark.parametrize(
    "payload, ok",
    [
        ({"success": True, "data": {"token": "t"}}, True),
        ({"success": False, "message": "Invalid credentials"}, False),
        ({"success": "true"}, False),
        ({"status": "success", "data": []}, True),
        ({"status": "error", "message": "Not found"}, False),
        ({"data": []}, False),
    ],
)
def test_normalise_envelope(payload, ok):
    outcome = normalise_envelope(payload)
    assert outcome.ok is ok
    assert outcome.raw == payload
    if not ok:
        assert outcome.kind == "domain"
        assert outcome.message == payload.get("message")


def test_non_object_payload_is_transport_error():
    outcome = normalise_envelope(["not", "an", "envelope"])
    assert outcome.is_transport_error


def test_login_sends_no_bearer(api, http):
    http.add("POST", "auth/login", {"success": True, "data": {"token": "t"}})
    outcome = api.login("a@x.com", "pw")
    assert outcome.ok
    call = http.calls[0]
    assert "Authorization" not in call.headers
    assert call.headers["Content-Type"] == "application/json"
    assert call.json == {"email": "a@x.com", "password": "pw"}
    assert call.timeout == 5


def test_resource_calls_send_bearer(api, http):
    http.add("GET", "land-surveys", {"status": "success", "data": []})
    outcome = api.list_surveys("tok")
    assert outcome.ok and outcome.data == []
    call = http.calls[0]
    assert call.headers["Authorization"] == "Bearer tok"
    assert "Content-Type" not in call.headers
    assert call.json is None


def test_domain_failure_on_http_error_status(api, http):
    http.add("POST", "auth/register", {"success": False, "message": "Email taken"}, status_code=409)
    outcome = api.register("a@x.com", "pw", "A", "owner")
    assert not outcome.ok
    assert outcome.kind == "domain"
    assert outcome.message == "Email taken"


def test_success_envelope_wins_over_status_code(api, http):
    http.add("POST", "wind", {"status": "success", "data": {"id": "w1"}}, status_code=201)
    assert api.add_wind("tok", {"buildingInputId": "b1"}).ok


def test_network_failure_is_transport_error(api, http):
    http.add("GET", "land-surveys", exc=requests.Timeout("read timed out"))
    outcome = api.list_surveys("tok")
    assert outcome.kind == "transport"
    assert outcome.message == "read timed out"
    assert outcome.raw == {"error": "read timed out"}


def test_non_json_body_is_transport_error(api, http):
    http.add("GET", "land-surveys", status_code=502, text="<html>Bad Gateway</html>")
    outcome = api.list_surveys("tok")
    assert outcome.is_transport_error
    assert "HTTP 502" in outcome.message


@pytest.mark.parametrize(
    "method_name, http_method, path",
    [
        ("run_disaster_analysis", "POST", "analysis/disaster/b%2F1"),
        ("get_disaster_report", "GET", "analysis/disaster/b%2F1"),
        ("run_vastu_analysis", "POST", "analysis/vastu/b%2F1"),
        ("get_vastu_report", "GET", "analysis/vastu/b%2F1"),
        ("generate_final_report", "POST", "analysis/report/b%2F1"),
        ("get_final_report", "GET", "analysis/report/b%2F1"),
    ],
)
def test_report_routes_quote_building_id(api, http, method_name, http_method, path):
    http.add(http_method, path, {"status": "success", "data": {}})
    assert getattr(api, method_name)("tok", "b/1").ok
    assert http.paths() == [(http_method, path)]


def test_fetch_report_rejects_unknown_kind(api):
    with pytest.raises(ValueError):
        api.fetch_report("structural", "tok", "b1")
