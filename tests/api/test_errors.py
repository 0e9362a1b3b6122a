# tests/api/test_errors.py

from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from src.user_dashboard.discounts import service as voucher_service


def test_storage_failure_is_an_infrastructure_error(client_for, monkeypatch):
    failing = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection refused")))
    monkeypatch.setattr(voucher_service.EligibilityFilter, "list_available", failing)

    client = client_for(None)
    response = client.get("/discounts/available")

    assert response.status_code == 503
    assert response.json()["error_code"] == "infrastructure_error"
