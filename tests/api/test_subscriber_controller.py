"""
API tests for the subscriber endpoints.

Subscribe, unsubscribe and the VAPID key are public; listing and managing
subscribers requires an operator token.
"""

import uuid

import pytest

from models import SubscriberStatus
from tests.factories import SubscriberFactory, persist

ENDPOINT = "https://fcm.googleapis.com/fcm/send/api-test-endpoint"

SUBSCRIPTION = {
    "endpoint": ENDPOINT,
    "expirationTime": None,
    "keys": {"p256dh": "BPublicKeyMaterial", "auth": "authSecret"},
    "browser": "Chrome",
    "device": "Desktop",
}


class TestPublicSubscriptionEndpoints:
    """Browser-facing endpoints."""

    @pytest.mark.asyncio
    async def test_vapid_public_key(self, client):
        response = await client.get("/api/vapid-public-key")

        assert response.status_code == 200
        assert response.json() == {"publicKey": "BTestPublicKeyForTests"}

    @pytest.mark.asyncio
    async def test_subscribe_then_repeat(self, client):
        first = await client.post("/api/subscribers", json=SUBSCRIPTION)
        second = await client.post("/api/subscribers", json=SUBSCRIPTION)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["data"]["id"] == second.json()["data"]["id"]
        assert second.json()["message"] == "Already subscribed"

        data = first.json()["data"]
        assert data["status"] == SubscriberStatus.ACTIVE
        assert data["browser"] == "Chrome"
        assert "p256dh_key" not in data
        assert "auth_key" not in data

    @pytest.mark.asyncio
    async def test_subscribe_flat_shape(self, client):
        response = await client.post(
            "/api/subscribers",
            json={"endpoint": ENDPOINT, "p256dh": "BKey", "auth": "secret"},
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_subscribe_rejects_insecure_endpoint(self, client):
        response = await client.post(
            "/api/subscribers",
            json={**SUBSCRIPTION, "endpoint": "http://push.example.com/abc"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unsubscribe(self, client, test_db):
        (subscriber,) = await persist(test_db, SubscriberFactory.build(endpoint=ENDPOINT))

        response = await client.post("/api/subscribers/unsubscribe", json={"endpoint": ENDPOINT})

        assert response.status_code == 200
        await test_db.refresh(subscriber)
        assert subscriber.status == SubscriberStatus.UNSUBSCRIBED

    @pytest.mark.asyncio
    async def test_unsubscribe_unknown_endpoint_succeeds(self, client):
        response = await client.post(
            "/api/subscribers/unsubscribe",
            json={"endpoint": "https://push.example.com/never-seen"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "success"


class TestSubscriberManagement:
    """Operator endpoints."""

    @pytest.mark.asyncio
    async def test_list_requires_auth(self, client):
        response = await client.get("/api/subscribers/")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_with_filters(self, authenticated_client, test_db):
        await persist(
            test_db,
            SubscriberFactory.build(browser="Chrome", segments=["news"]),
            SubscriberFactory.build(browser="Firefox", segments=["news", "vip"]),
            SubscriberFactory.build(browser="Firefox", status=SubscriberStatus.UNSUBSCRIBED),
        )

        everyone = await authenticated_client.get("/api/subscribers/")
        firefox = await authenticated_client.get("/api/subscribers/", params={"browser": "Firefox"})
        vip = await authenticated_client.get("/api/subscribers/", params={"segment": "vip"})
        active = await authenticated_client.get(
            "/api/subscribers/", params={"status": SubscriberStatus.ACTIVE}
        )

        assert everyone.status_code == 200
        assert everyone.json()["total"] == 3
        assert firefox.json()["total"] == 2
        assert vip.json()["total"] == 1
        assert vip.json()["subscribers"][0]["segments"] == ["news", "vip"]
        assert active.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_search(self, authenticated_client, test_db):
        await persist(
            test_db,
            SubscriberFactory.build(endpoint="https://updates.push.apple.com/device-xyz"),
            SubscriberFactory.build(),
        )

        response = await authenticated_client.get("/api/subscribers/", params={"search": "apple"})

        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_update_segments(self, authenticated_client, test_db):
        (subscriber,) = await persist(test_db, SubscriberFactory.build())

        response = await authenticated_client.put(
            f"/api/subscribers/{subscriber.id}/segments",
            json={"segments": ["vip", " vip", "beta"]},
        )

        assert response.status_code == 200
        assert response.json()["data"]["segments"] == ["vip", "beta"]

    @pytest.mark.asyncio
    async def test_update_segments_unknown_subscriber(self, authenticated_client):
        response = await authenticated_client.put(
            f"/api/subscribers/{uuid.uuid4()}/segments", json={"segments": ["vip"]}
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "SUBSCRIBER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_delete(self, authenticated_client, test_db):
        (subscriber,) = await persist(test_db, SubscriberFactory.build())

        response = await authenticated_client.delete(f"/api/subscribers/{subscriber.id}")
        again = await authenticated_client.delete(f"/api/subscribers/{subscriber.id}")

        assert response.status_code == 200
        assert again.status_code == 404
