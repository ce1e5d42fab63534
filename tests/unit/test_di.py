"""Tests for dependency injection helpers."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from certsteward.di import get_controller


def test_get_controller_returns_app_controller():
    """Test the controller is read from the application state."""
    request = MagicMock()
    controller = MagicMock()
    request.app.state.controller = controller

    assert get_controller(request) is controller


def test_get_controller_before_startup():
    """Test a missing controller yields 503."""
    request = MagicMock()
    request.app.state.controller = None

    with pytest.raises(HTTPException) as exc_info:
        get_controller(request)

    assert exc_info.value.status_code == 503
