"""Tests for api/base.py - Unified API response format."""

from datetime import timezone

from api.base import (
    success_response,
    error_response,
    ErrorCodes,
)
from api.middleware import request_id_var


class TestSuccessResponse:
    """Tests for success_response()."""

    def test_structure(self):
        resp = success_response({"foo": "bar"})
        assert resp.success is True
        assert resp.data == {"foo": "bar"}
        assert resp.error is None

    def test_timestamp_is_utc(self):
        resp = success_response({})
        assert resp.meta.timestamp.tzinfo == timezone.utc

    def test_request_id_generated_outside_request(self):
        assert success_response({}).meta.request_id

    def test_request_id_taken_from_context(self):
        token = request_id_var.set("req-12345678")
        try:
            assert success_response({}).meta.request_id == "req-12345678"
        finally:
            request_id_var.reset(token)


class TestErrorResponse:
    """Tests for error_response()."""

    def test_structure(self):
        resp = error_response(ErrorCodes.CODE_EXPIRED, "Code has expired")
        assert resp.success is False
        assert resp.data is None
        assert resp.error.code == "CODE_EXPIRED"
        assert resp.error.message == "Code has expired"

    def test_serializes_to_json_envelope(self):
        body = error_response(ErrorCodes.RATE_LIMITED, "slow down").model_dump(mode="json")

        assert set(body) == {"success", "data", "error", "meta"}
        assert isinstance(body["meta"]["timestamp"], str)
