"""Unit tests for AppError hierarchy and the global exception handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import (
    AppError,
    ConfigurationError,
    NotFoundError,
    TracerLinkCreationError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (ValidationError, 400, "validation_error"),
            (NotFoundError, 404, "not_found"),
            (TracerLinkCreationError, 500, "tracer_link_create_failed"),
            (ConfigurationError, 500, "configuration_error"),
        ],
        ids=["validation", "not_found", "create_failed", "configuration"],
    )
    def test_status_and_code(self, cls, status, code):
        e = cls("boom")
        assert isinstance(e, AppError)
        assert e.status_code == status
        assert e.error_code == code
        assert e.message == "boom"


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("Tracer link not found")
        assert e.to_dict() == {"error": "Tracer link not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "jobId"}, "field", "jobId"),
            ({"details": [{"loc": ["limit"]}]}, "details", [{"loc": ["limit"]}]),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return app


class TestErrorHandlers:
    def test_app_error_rendered_as_json(self):
        client = TestClient(_app_raising(NotFoundError("Job not found")))
        resp = client.get("/boom")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Job not found", "code": "not_found"}

    def test_server_app_error_keeps_code(self):
        client = TestClient(_app_raising(TracerLinkCreationError("gave up")))
        resp = client.get("/boom")
        assert resp.status_code == 500
        assert resp.json()["code"] == "tracer_link_create_failed"

    def test_unhandled_exception_is_500(self):
        client = TestClient(
            _app_raising(RuntimeError("db down")), raise_server_exceptions=False
        )
        resp = client.get("/boom")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
