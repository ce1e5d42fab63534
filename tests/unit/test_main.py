"""Tests for main application entry point."""

from fastapi import FastAPI


def test_main_app_exists():
    """Test that main module exports a configured app."""
    from certsteward.main import app

    assert isinstance(app, FastAPI)
    paths = {route.path for route in app.routes}
    assert "/health" in paths
    assert "/api/v1/certificates/{namespace}/{name}" in paths


def test_run_starts_uvicorn(mocker):
    """Test the console entry point runs uvicorn with settings."""
    from certsteward import main

    uvicorn_run = mocker.patch("uvicorn.run")

    main.run()

    args, kwargs = uvicorn_run.call_args
    assert args == ("certsteward.main:app",)
    assert kwargs["port"] == 8000
