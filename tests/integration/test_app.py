"""Smoke tests for the application factory (lifespan not entered)."""

from config import AppSettings, DatabaseSettings
from app import create_app


def _settings(**overrides) -> AppSettings:
    return AppSettings(db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"), **overrides)


def test_routes_registered():
    app = create_app(_settings())
    paths = {route.path for route in app.routes}
    assert {
        "/health",
        "/t/{token}",
        "/api/tracer-links/analytics",
        "/api/tracer-links/jobs/{job_id}",
    } <= paths


def test_sentry_not_initialised_without_dsn(mocker):
    init = mocker.patch("app.sentry_sdk.init")
    create_app(_settings())
    init.assert_not_called()


def test_docs_can_be_disabled():
    app = create_app(_settings(docs_url=None))
    assert app.docs_url is None


def test_error_shape_documented_in_openapi():
    schema = create_app(_settings()).openapi()
    job_links = schema["paths"]["/api/tracer-links/jobs/{job_id}"]["get"]["responses"]
    assert job_links["404"]["content"]["application/json"]["schema"] == {
        "$ref": "#/components/schemas/ErrorResponse"
    }
    analytics = schema["paths"]["/api/tracer-links/analytics"]["get"]["responses"]
    assert "400" in analytics
    assert set(schema["components"]["schemas"]["ErrorResponse"]["properties"]) == {
        "error",
        "code",
        "field",
        "details",
    }
