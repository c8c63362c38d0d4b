"""Test error handling functionality.

Verifies that custom exceptions are properly raised and handled,
returning the `{"success": false, "error": ...}` envelope.
"""
import asyncio
import json

import pytest
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request

from api.meal_plans import create_shopping_list, get_current_meal_plan
from core.error_handlers import (
    app_exception_handler,
    create_error_response,
    generic_exception_handler,
    validation_exception_handler,
)
from core.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from schemas import ShoppingListRequest


def _request():
    return Request({"type": "http", "method": "POST", "path": "/api/test", "headers": []})


def _body(response):
    return json.loads(response.body)


def test_exception_classes_have_proper_attributes():
    """Test that custom exception classes have expected attributes."""
    exc = NotFoundError("Meal plan", 123)
    assert exc.status_code == 404
    assert "123" in exc.message

    exc = ValidationError("Week start date is required", field="week_start_date")
    assert exc.status_code == 400
    assert exc.details == {"field": "week_start_date"}

    assert AuthenticationError().status_code == 401
    assert ConflictError("dup").status_code == 409
    assert DatabaseError("boom", operation="create").details == {"operation": "create"}

    exc = QuotaExceededError(5, "BASIC")
    assert exc.status_code == 429
    assert exc.limit == 5
    assert "(5)" in exc.message


def test_app_exception_renders_envelope():
    response = asyncio.run(app_exception_handler(_request(), QuotaExceededError(2, "FREE")))
    assert response.status_code == 429
    body = _body(response)
    assert body["success"] is False
    assert "Daily AI request limit reached (2)" in body["error"]


def test_request_validation_is_400():
    exc = RequestValidationError([{"loc": ("body", "meals_per_day"), "msg": "Input should be less than or equal to 6",
                                   "type": "less_than_equal"}])
    response = asyncio.run(validation_exception_handler(_request(), exc))
    assert response.status_code == 400
    body = _body(response)
    assert body["success"] is False
    assert body["details"]["validation_errors"][0]["field"] == "body.meals_per_day"


def test_unexpected_error_is_500_without_internals():
    response = asyncio.run(generic_exception_handler(_request(), RuntimeError("secret stack")))
    assert response.status_code == 500
    assert "secret" not in _body(response)["error"]


def test_error_response_omits_empty_details():
    assert _body(create_error_response("Nope", 404)) == {"success": False, "error": "Nope"}


def test_shopping_list_without_week_start_is_400(db, user):
    with pytest.raises(ValidationError) as exc_info:
        create_shopping_list(plan_id=1, payload=ShoppingListRequest(), user=user, db=db)
    assert exc_info.value.message == "Week start date is required"
    assert exc_info.value.status_code == 400


def test_current_plan_missing_is_404(db, user):
    with pytest.raises(NotFoundError) as exc_info:
        get_current_meal_plan(user=user, db=db)
    assert exc_info.value.status_code == 404


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
