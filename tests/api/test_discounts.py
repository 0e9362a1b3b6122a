# tests/api/test_discounts.py

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.discounts.cart import CartSnapshot, EMPTY_SNAPSHOT
from src.discounts.constants import DiscountScope, DiscountType

from tests.factories import make_discount


def running_discount(**overrides):
    now = datetime.now(timezone.utc)
    overrides.setdefault("start_date", now - timedelta(days=1))
    overrides.setdefault("end_date", now + timedelta(days=1))
    return make_discount(**overrides)


@pytest.fixture
def repository(monkeypatch):
    repo = MagicMock()
    repo.list_available_candidates = AsyncMock(return_value=[])
    repo.get_by_code = AsyncMock(return_value=None)
    repo.count_user_usages = AsyncMock(return_value=0)
    monkeypatch.setattr("src.user_dashboard.discounts.service.DiscountRepository", lambda session: repo)
    return repo


@pytest.fixture
def resolver(monkeypatch):
    cart = MagicMock()
    cart.resolve = AsyncMock(return_value=EMPTY_SNAPSHOT)
    monkeypatch.setattr("src.user_dashboard.discounts.service.CartSnapshotResolver", lambda session: cart)
    return cart


class TestAvailable:

    def test_no_auth_needed(self, client_for, repository, resolver):
        repository.list_available_candidates.return_value = [
            running_discount(code="OK1"),
            running_discount(code="GONE", max_uses=100, uses_count=100),
        ]

        response = client_for(None).get("/discounts/available")

        assert response.status_code == 200
        body = response.json()
        assert body["message"]
        assert [d["code"] for d in body["data"]] == ["OK1"]
        assert body["data"][0]["discountApplyType"] == "ALL"

    def test_query_parameters(self, client_for, repository, resolver):
        cart_ids = [uuid.uuid4(), uuid.uuid4()]

        response = client_for(None).get(
            "/discounts/available",
            params={"limit": 5, "cartItemIds": [str(i) for i in cart_ids], "onlyShopDiscounts": "true"},
        )

        assert response.status_code == 200
        resolver.resolve.assert_awaited_once_with(cart_ids, None)
        kwargs = repository.list_available_candidates.await_args.kwargs
        assert kwargs["limit"] == 5
        assert kwargs["scope"] == DiscountScope.SHOP

    def test_known_user_scopes_the_cart(self, client_for, seller_user, repository, resolver):
        client_for(seller_user).get("/discounts/available", params={"cartItemIds": [str(uuid.uuid4())]})
        assert resolver.resolve.await_args.args[1] == seller_user.uid

    def test_limit_is_bounded(self, client_for, repository, resolver):
        response = client_for(None).get("/discounts/available", params={"limit": 100000})
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "limit"


class TestValidateCode:

    def test_requires_authentication(self, client_for, repository, resolver):
        response = client_for(None).post("/discounts/validate-code", json={"code": "SALE1"})
        assert response.status_code == 401

    def test_valid_code(self, client_for, seller_user, repository, resolver):
        repository.get_by_code.return_value = running_discount(
            code="SALE1", discount_type=DiscountType.PERCENTAGE, value=20, max_discount_value=50000,
            min_order_value=100000
        )
        resolver.resolve.return_value = CartSnapshot(order_total=1_000_000)

        response = client_for(seller_user).post(
            "/discounts/validate-code", json={"code": "SALE1", "cartItemIds": [str(uuid.uuid4())]}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isValid"] is True
        assert data["discountAmount"] == 50000
        assert data["finalOrderTotal"] == 950000
        assert data["discount"]["code"] == "SALE1"
        assert data["discount"]["description"] is None
        assert data["discount"]["shopId"] is None
        assert data["discount"]["maxDiscountValue"] == 50000
        assert "error" not in data

    def test_business_invalidity_is_not_an_http_error(self, client_for, seller_user, repository, resolver):
        repository.get_by_code.return_value = running_discount(max_uses=100, uses_count=100)

        response = client_for(seller_user).post("/discounts/validate-code", json={"code": "SALE1"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data == {"isValid": False, "error": data["error"], "errorCode": "exhausted"}

    def test_unknown_code(self, client_for, seller_user, repository, resolver):
        response = client_for(seller_user).post("/discounts/validate-code", json={"code": "NOPE"})
        assert response.json()["data"]["errorCode"] == "code_not_found"
