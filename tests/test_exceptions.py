"""Tests for stackeye.exceptions -- hierarchy and APIError construction."""

from __future__ import annotations

import httpx
import pytest

from stackeye.exceptions import (
    APIError,
    ConfigError,
    DeadlineExceeded,
    InvalidUsageError,
    OperationCancelled,
    StackEyeError,
    raise_for_api_error,
)


def _response(status: int, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", "https://api.stackeye.io/v1/probes"), **kwargs)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc, code",
        [
            (StackEyeError("x"), 1),
            (InvalidUsageError("x"), 2),
            (ConfigError("x"), 1),
            (OperationCancelled(), 1),
            (DeadlineExceeded(), 9),
        ],
    )
    def test_class_exit_codes(self, exc: StackEyeError, code: int) -> None:
        assert exc.exit_code == code

    def test_instance_override(self) -> None:
        assert StackEyeError("x", exit_code=7).exit_code == 7

    def test_deadline_is_not_a_builtin_timeout(self) -> None:
        assert not isinstance(DeadlineExceeded(), TimeoutError)


class TestAPIErrorPredicates:
    def test_status_drives_predicates(self) -> None:
        assert APIError(401).is_unauthorized()
        assert APIError(403).is_forbidden()
        assert APIError(404).is_not_found()
        assert APIError(429).is_rate_limited()
        assert APIError(422).is_validation_error()
        assert APIError(503).is_server_error()

    def test_code_drives_predicates(self) -> None:
        err = APIError(403, code="probe_limit_exceeded")
        assert err.is_plan_limit_exceeded()
        assert err.is_forbidden()

    def test_message_fallbacks(self) -> None:
        assert str(APIError(500)) == "HTTP 500"
        assert str(APIError(404, code="not_found")) == "not_found"
        assert str(APIError(404, code="not_found", message="Probe missing")) == "Probe missing"


class TestFromResponse:
    def test_envelope_body(self) -> None:
        resp = _response(422, json={
            "error": {
                "code": "validation",
                "message": "bad input",
                "fields": {"url": "must start with http"},
            },
            "request_id": "req_1",
        })
        err = APIError.from_response(resp)
        assert err.status_code == 422
        assert err.code == "validation"
        assert err.message == "bad input"
        assert err.request_id == "req_1"
        assert err.validation_errors() == {"url": "must start with http"}

    def test_flat_body_with_detail_fields(self) -> None:
        resp = _response(400, json={"code": "invalid_input", "details": {"fields": {"name": "required"}}})
        err = APIError.from_response(resp)
        assert err.code == "invalid_input"
        assert err.fields == {"name": "required"}

    def test_string_error_body(self) -> None:
        err = APIError.from_response(_response(403, json={"error": "nope"}))
        assert err.message == "nope"
        assert err.code == "forbidden"

    def test_non_json_body_uses_status_code(self) -> None:
        resp = _response(502, text="<html>Bad Gateway</html>", headers={"X-Request-ID": "req_h"})
        err = APIError.from_response(resp)
        assert err.code == "internal_server"
        assert err.request_id == "req_h"
        assert err.is_server_error()

    def test_raise_for_api_error(self) -> None:
        raise_for_api_error(_response(200, json={}))
        with pytest.raises(APIError) as exc_info:
            raise_for_api_error(_response(401, json={"code": "unauthorized"}))
        assert exc_info.value.is_unauthorized()
