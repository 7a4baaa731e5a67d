"""
Unit tests for the response envelope and error taxonomy.
"""

import pytest

from shared.envelope import (
    error_envelope,
    failure_envelope,
    internal_error_envelope,
    success_envelope,
)
from shared.errors import (
    ErrorKind,
    NotFoundError,
    RateLimitError,
    RequestSetupError,
    UpstreamError,
    UpstreamUnavailableError,
    ValidationError,
)


class TestSuccessEnvelope:

    def test_reserved_keys_lead(self):
        envelope = success_envelope({"results": [1]}, query="matrix", page=2)

        assert list(envelope.body) == ["status", "success", "creator", "query", "page", "results"]
        assert envelope.body["creator"] == "GiftedTech"

    def test_upstream_cannot_override_reserved_keys(self):
        envelope = success_envelope({"status": 500, "success": False, "creator": "someone"})

        assert envelope.body == {"status": 200, "success": True, "creator": "GiftedTech"}

    def test_echo_cannot_override_reserved_keys(self):
        envelope = success_envelope({}, status=201, success=False)

        assert envelope.status == 201
        assert envelope.body["success"] is True

    def test_rejects_failure_status(self):
        with pytest.raises(ValueError):
            success_envelope({}, status=404)

    def test_response_status_mirrors_body(self):
        response = success_envelope({"results": []}).to_response()

        assert response.status_code == 200


class TestFailureEnvelope:

    @pytest.mark.parametrize("error,kind,status", [
        (ValidationError("Query parameter is required", field="query"), ErrorKind.VALIDATION_ERROR, 400),
        (RateLimitError(retry_after=30), ErrorKind.RATE_LIMITED, 429),
        (UpstreamUnavailableError(), ErrorKind.UPSTREAM_UNAVAILABLE, 503),
        (UpstreamError(418, "teapot"), ErrorKind.UPSTREAM_ERROR, 418),
        (UpstreamError(304), ErrorKind.UPSTREAM_ERROR, 502),
        (RequestSetupError(), ErrorKind.REQUEST_SETUP_ERROR, 500),
        (NotFoundError(), ErrorKind.NOT_FOUND, 404),
    ])
    def test_kind_maps_to_status(self, error, kind, status):
        envelope = failure_envelope(error)

        assert error.kind is kind
        assert envelope.status == status
        assert envelope.body["status"] == status
        assert envelope.body["success"] is False
        assert set(envelope.body) == {"status", "success", "message"}

    def test_validation_error_keeps_field(self):
        error = ValidationError("ID parameter is required", field="id")
        assert error.field == "id"
        assert error.code == "VALIDATION_ERROR"

    def test_rate_limit_message(self):
        envelope = failure_envelope(RateLimitError())
        assert envelope.body["message"] == "Too many requests, please try again later."

    def test_error_envelope_never_reports_success(self):
        envelope = error_envelope(302, "odd")
        assert envelope.status == 500
        assert envelope.body["success"] is False


class TestInternalErrorEnvelope:

    def test_detail_hidden_by_default(self):
        envelope = internal_error_envelope(KeyError("secret"))

        assert envelope.body == {"status": 500, "success": False, "message": "Internal server error"}

    def test_detail_included_when_requested(self):
        try:
            raise KeyError("secret")
        except KeyError as exc:
            envelope = internal_error_envelope(exc, include_detail=True)

        assert envelope.body["message"] == "'secret'"
        assert "KeyError" in envelope.body["stack"]


@pytest.mark.parametrize("envelope", [
    success_envelope({"a": 1}),
    success_envelope({}, status=204),
    failure_envelope(ValidationError("bad")),
    failure_envelope(UpstreamError(404, "missing")),
    failure_envelope(UpstreamError(301)),
    internal_error_envelope(RuntimeError("x")),
    error_envelope(405, "Method Not Allowed"),
])
def test_success_matches_status(envelope):
    assert envelope.body["success"] == (envelope.body["status"] < 400)
    assert envelope.status == envelope.body["status"]
