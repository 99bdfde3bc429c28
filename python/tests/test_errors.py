"""Tests for CORS errors and the error envelope.

Verifies:
- Every error code maps to an HTTP status
- Resolution errors carry their code and message
- Handlers render the envelope without leaking unknown exception details
"""

import json

import pytest
from starlette.requests import Request

from corsgate.errors import (
    ERROR_CODE_TO_STATUS,
    ConfigResolutionError,
    CorsError,
    CorsErrorCode,
    OriginResolutionError,
)
from corsgate.responses import cors_error_handler, error_response, unhandled_exception_handler
from tests.helpers import http_scope


class TestErrors:
    def test_every_code_has_status(self):
        for code in CorsErrorCode:
            assert code in ERROR_CODE_TO_STATUS

    def test_config_resolution_error(self):
        err = ConfigResolutionError()
        assert isinstance(err, CorsError)
        assert err.code == CorsErrorCode.E_CONFIG_RESOLUTION
        assert err.status_code == 500
        assert str(err) == "CORS options could not be resolved"

    def test_origin_resolution_error_custom_message(self):
        err = OriginResolutionError("registry down")
        assert err.code == CorsErrorCode.E_ORIGIN_RESOLUTION
        assert err.message == "registry down"


class TestEnvelope:
    def test_error_response_shape(self):
        response = error_response(CorsErrorCode.E_CONFIG_RESOLUTION, "bad options")
        assert response == {"error": {"code": "E_CONFIG_RESOLUTION", "message": "bad options"}}

    @pytest.mark.asyncio
    async def test_cors_error_handler(self):
        response = await cors_error_handler(
            Request(http_scope()), OriginResolutionError("registry down")
        )
        assert response.status_code == 500
        assert json.loads(response.body)["error"]["code"] == "E_ORIGIN_RESOLUTION"

    @pytest.mark.asyncio
    async def test_unhandled_exception_hides_details(self):
        response = await unhandled_exception_handler(
            Request(http_scope()), RuntimeError("secret connection string")
        )
        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["error"]["code"] == "E_INTERNAL"
        assert "secret" not in body["error"]["message"]

    @pytest.mark.asyncio
    async def test_unhandled_handler_keeps_cors_codes(self):
        response = await unhandled_exception_handler(
            Request(http_scope()), ConfigResolutionError("bad options")
        )
        assert json.loads(response.body)["error"]["code"] == "E_CONFIG_RESOLUTION"
