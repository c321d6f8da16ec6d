"""HTTP tests for the API with the database and cache mocked out."""

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.middleware import request_metrics
from app.core.rate_limit import reset_rate_limits
from app.models.payment import Purchase, PurchaseStatus
from app.services.payments import AccessCheck, ServiceNotFoundError, sign_payload
from main import app

API = settings.api_v1_prefix


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def mock_user():
    user = MagicMock()
    user.id = uuid.uuid4()
    user.is_admin = False
    user.is_active = True
    return user


@pytest.fixture
def client(mock_db, mock_user):
    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: mock_user
    reset_rate_limits()
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_rate_limits()


class TestHealth:
    """Liveness and readiness."""

    def test_health(self, client):
        response = client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Request-ID" in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.get(f"{API}/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_unmatched_paths_share_one_metrics_key(self, client):
        request_metrics.reset()
        for suffix in ("wp-admin", "phpmyadmin", ".env"):
            assert client.get(f"/{suffix}").status_code == 404

        routes = request_metrics.snapshot()["routes"]
        assert routes["GET <unmatched>"]["count"] == 3
        assert not any("wp-admin" in key for key in routes)
        request_metrics.reset()

    def test_ready(self, client):
        with patch("app.api.v1.health.check_database", AsyncMock(return_value=True)), \
             patch("app.api.v1.health.check_redis", AsyncMock(return_value=True)):
            response = client.get(f"{API}/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "checks": {"database": "ok", "redis": "ok"}}

    def test_not_ready_when_redis_is_down(self, client):
        with patch("app.api.v1.health.check_database", AsyncMock(return_value=True)), \
             patch("app.api.v1.health.check_redis", AsyncMock(side_effect=OSError("refused"))):
            response = client.get(f"{API}/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["redis"] == "error"


class TestDivinationEndpoints:
    """Stateless calculations."""

    def test_numerology(self, client):
        response = client.post(f"{API}/divination/numerology", json={"birth_date": "1990-05-15"})
        assert response.status_code == 200
        assert response.json()["life_path_number"] == 3

    def test_numerology_bad_date(self, client):
        response = client.post(f"{API}/divination/numerology", json={"birth_date": "15/05/1990"})
        assert response.status_code == 422

    def test_tarot_unknown_card(self, client):
        response = client.post(
            f"{API}/divination/tarot",
            json={"cards": [{"name": "The Programmer"}]},
        )
        assert response.status_code == 400

    def test_iching_by_number(self, client):
        response = client.post(f"{API}/divination/iching", json={"hexagram_number": 11})
        assert response.status_code == 200
        assert response.json()["number"] == 11

    def test_iching_cast(self, client):
        response = client.post(f"{API}/divination/iching", json={})
        assert response.status_code == 200
        assert len(response.json()["lines"]) == 6

    def test_compatibility(self, client):
        response = client.post(
            f"{API}/divination/compatibility",
            json={"birth_date_1": "1990-05-15", "birth_date_2": "2000-01-01"},
        )
        assert response.status_code == 200
        assert response.json()["score"] == 7

    def test_rate_limited(self, client):
        with patch.object(settings, "rate_limit_divination_per_minute", 2):
            codes = [
                client.post(f"{API}/divination/numerology", json={"birth_date": "1990-05-15"}).status_code
                for _ in range(3)
            ]
        assert codes == [200, 200, 429]


class TestTarotGating:
    """Free and paid spreads."""

    def test_unknown_spread(self, client):
        response = client.post(f"{API}/tarot/reading/seven", json={"save": False})
        assert response.status_code == 400

    def test_free_spread(self, client):
        response = client.post(f"{API}/tarot/reading/three", json={"save": False})
        assert response.status_code == 200
        assert [c["position"] for c in response.json()["cards"]] == ["past", "present", "future"]

    def test_paid_spread_without_purchase(self, client):
        access = AccessCheck(has_access=False, service=None)
        with patch("app.api.deps.check_service_access", AsyncMock(return_value=access)):
            response = client.post(f"{API}/tarot/reading/five", json={"save": False})

        assert response.status_code == 403
        assert "five-card-tarot" in response.json()["detail"]

    def test_paid_spread_with_purchase(self, client):
        access = AccessCheck(has_access=True, service=None)
        with patch("app.api.deps.check_service_access", AsyncMock(return_value=access)):
            response = client.post(f"{API}/tarot/reading/ten", json={"save": False})

        assert response.status_code == 200
        assert len(response.json()["cards"]) == 10

    def test_missing_service(self, client):
        with patch(
            "app.api.deps.check_service_access",
            AsyncMock(side_effect=ServiceNotFoundError("five-card-tarot")),
        ):
            response = client.post(f"{API}/tarot/reading/five", json={"save": False})

        assert response.status_code == 404

    def test_access_for_free_spread(self, client):
        response = client.get(f"{API}/tarot/access/three")
        assert response.status_code == 200
        assert response.json()["has_access"] is True
        assert response.json()["requires_purchase"] is False

    def test_access_for_paid_spread(self, client):
        access = AccessCheck(has_access=False, service=None)
        with patch("app.api.v1.tarot.check_service_access", AsyncMock(return_value=access)):
            response = client.get(f"{API}/tarot/access/five")

        body = response.json()
        assert body["has_access"] is False
        assert body["requires_purchase"] is True
        assert body["service_slug"] == "five-card-tarot"


class TestPaymentWebhook:
    """Webhook authentication and dispatch."""

    def test_invalid_signature(self, client):
        with patch.object(settings, "payment_webhook_secret", "whsec_test"):
            response = client.post(
                f"{API}/payments/webhook",
                content=b"{}",
                headers={"X-Signature": "sha256=deadbeef"},
            )
        assert response.status_code == 401

    def test_missing_secret_rejects(self, client):
        payload = b"{}"
        with patch.object(settings, "payment_webhook_secret", ""):
            response = client.post(
                f"{API}/payments/webhook",
                content=payload,
                headers={"X-Signature": sign_payload(payload, "")},
            )
        assert response.status_code == 401

    def test_completed_event_sends_confirmation(self, client, mock_db):
        purchase = MagicMock()
        purchase.id = uuid.uuid4()
        purchase.status = PurchaseStatus.COMPLETED
        payload = json.dumps(
            {"type": "checkout.session.completed", "data": {"transaction_id": "txn_1"}}
        ).encode()

        with patch.object(settings, "payment_webhook_secret", "whsec_test"), \
             patch("app.api.v1.payments.handle_webhook_event", AsyncMock(return_value=purchase)), \
             patch("app.api.v1.payments.send_purchase_confirmation") as mock_task:
            response = client.post(
                f"{API}/payments/webhook",
                content=payload,
                headers={"X-Signature": sign_payload(payload, "whsec_test")},
            )

        assert response.status_code == 200
        assert response.json() == {"status": "processed", "purchase_status": "completed"}
        mock_db.commit.assert_awaited()
        mock_task.delay.assert_called_once_with(str(purchase.id))

    def test_non_object_data_is_bad_request(self, client, mock_db):
        payload = json.dumps({"type": "checkout.session.completed", "data": ["txn_1"]}).encode()
        with patch.object(settings, "payment_webhook_secret", "whsec_test"):
            response = client.post(
                f"{API}/payments/webhook",
                content=payload,
                headers={"X-Signature": sign_payload(payload, "whsec_test")},
            )

        assert response.status_code == 400
        mock_db.execute.assert_not_called()

    def test_replayed_completion_is_ignored(self, client, mock_db):
        purchase = Purchase(
            id=uuid.uuid4(),
            transaction_id="txn_1",
            status=PurchaseStatus.REFUNDED,
            expires_at=None,
        )
        result = MagicMock()
        result.scalar_one_or_none.return_value = purchase
        mock_db.execute.return_value = result
        payload = json.dumps(
            {"type": "checkout.session.completed", "data": {"transaction_id": "txn_1"}}
        ).encode()

        with patch.object(settings, "payment_webhook_secret", "whsec_test"), \
             patch("app.api.v1.payments.send_purchase_confirmation") as mock_task:
            response = client.post(
                f"{API}/payments/webhook",
                content=payload,
                headers={"X-Signature": sign_payload(payload, "whsec_test")},
            )

        assert response.json() == {"status": "ignored"}
        assert purchase.status == PurchaseStatus.REFUNDED
        assert purchase.expires_at is None
        mock_task.delay.assert_not_called()

    def test_ignored_event(self, client):
        payload = b'{"type": "customer.created"}'
        with patch.object(settings, "payment_webhook_secret", "whsec_test"):
            response = client.post(
                f"{API}/payments/webhook",
                content=payload,
                headers={"X-Signature": sign_payload(payload, "whsec_test")},
            )

        assert response.json() == {"status": "ignored"}


class TestRouteRegistration:
    """Every router is mounted under the API prefix."""

    @pytest.mark.parametrize(
        "path",
        [
            "/auth/register",
            "/auth/login",
            "/users/me",
            "/settings",
            "/divination/holistic",
            "/iching/reading",
            "/numerology/reading",
            "/readings",
            "/payments/checkout",
            "/feedback",
            "/feedback-analytics/all-types",
            "/community/posts",
            "/products",
            "/recommendations",
            "/recommendations/related",
            "/recommendations/popular",
            "/home",
            "/analytics/summary",
        ],
    )
    def test_route_exists(self, path):
        paths = {route.path for route in app.routes}
        assert f"{API}{path}" in paths


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
