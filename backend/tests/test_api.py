"""
Test: HTTP API
==============

Runs requests through the FastAPI app with the graph and the external
gateways replaced through dependency overrides. The lifespan is not
entered, so no Neo4j connection is opened.

Key behaviors tested:
- Unknown routes and failed validation use the JSON error envelope
- Protected routes need a valid access token
- Seller-only routes need a verified seller
- Album creation and deletion through the real repository
- Webhook signature handling
- Signup sets the Authorization cookie
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import stripe
from fastapi.testclient import TestClient

from conftest import FakeNeo4jService, make_user
from api.dependencies import (
    get_auth_service,
    get_neo4j,
    get_post_service,
    get_seller_repository,
    get_token_service,
    get_webhook_service,
)
from main import app
from middleware.auth import get_current_user
from models.domain.seller import Seller
from repositories.post_repository import PostRepository
from services.post_service import PostService
from services.webhook_service import WebhookService


@pytest.fixture
def neo4j():
    return FakeNeo4jService()


@pytest.fixture
def client(neo4j, tokens):
    app.dependency_overrides[get_neo4j] = lambda: neo4j
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_in(user_id="cus_seller"):
    app.dependency_overrides[get_current_user] = lambda: make_user(user_id)


def seller_repository(verified=True):
    repo = AsyncMock()
    repo.find_by_user_id.return_value = Seller(id="se_abcdefgh", verified=verified, user_id="cus_seller")
    app.dependency_overrides[get_seller_repository] = lambda: repo
    return repo


def post_service(neo4j, stripe_gateway):
    service = PostService(PostRepository(neo4j), AsyncMock(), stripe_gateway, AsyncMock(), AsyncMock())
    app.dependency_overrides[get_post_service] = lambda: service
    return service


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        response = client.get("/nothing/here")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found", "status": 404}

    def test_validation_failure(self, client):
        app.dependency_overrides[get_post_service] = lambda: AsyncMock()

        response = client.post("/albums/likes/po_abcdefgh", json={})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert "userId" in body["message"]


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.get("/wallet/cus_seller")

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication token missing", "status": 401}

    def test_invalid_token(self, client):
        response = client.get("/wallet/cus_seller", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    def test_bearer_token(self, client, neo4j, tokens):
        neo4j.responses = [
            [{"user": {"id": "cus_seller", "email": "s@example.com", "userName": "seller"}}],
            [{"amount": 42}],
        ]
        token = tokens.create_access_token("cus_seller")["token"]

        response = client.get("/wallet/cus_seller", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"balance": 42.0, "sellerId": "cus_seller"}

    def test_cookie_token_for_unknown_user(self, client, tokens):
        client.cookies.set("Authorization", tokens.create_access_token("cus_gone")["token"])

        response = client.get("/wallet/cus_gone")

        assert response.status_code == 401
        assert response.json()["error"] == "Wrong authentication token"


class TestAlbums:

    def test_unverified_seller_cannot_create(self, client, neo4j, stripe_gateway):
        sign_in()
        seller_repository(verified=False)
        post_service(neo4j, stripe_gateway)

        response = client.post("/albums/cus_seller", json={"title": "Summer", "price": 10})

        assert response.status_code == 403
        assert response.json() == {"error": "this user is not verified yet", "status": 403}
        stripe_gateway.create_product.assert_not_awaited()

    def test_create_album(self, client, neo4j, stripe_gateway):
        sign_in()
        seller_repository(verified=True)
        post_service(neo4j, stripe_gateway)
        neo4j.responses = [[{
            "post": {"id": "po_abcdefgh", "title": "Summer", "price": 12.5, "views": 0, "likes": 0},
            "collection": {"id": "co_abcdefgh"},
        }]]

        response = client.post("/albums/cus_seller", json={"title": "Summer", "price": 12.5})

        assert response.status_code == 201
        album = response.json()["albumData"]
        assert (album["views"], album["likes"]) == (0, 0)
        assert response.json()["collection"] == {"id": "co_abcdefgh"}

        query, params = neo4j.queries[0]
        assert params["userId"] == "cus_seller"
        stripe_gateway.create_product.assert_awaited_once()

    def test_delete_missing_album(self, client, neo4j, stripe_gateway):
        sign_in()
        post_service(neo4j, stripe_gateway)
        neo4j.responses = [[]]

        response = client.delete("/albums/po_missing0")

        assert response.status_code == 404
        assert response.json() == {"error": "Post with ID po_missing0 not found", "status": 404}

    def test_static_routes_are_not_shadowed(self, client, neo4j, stripe_gateway):
        sign_in()
        post_service(neo4j, stripe_gateway)
        neo4j.responses = [[{"category": {"id": "ca_abcdefgh", "name": "Beach"}}]]

        response = client.get("/albums/all-categories")

        assert response.status_code == 201
        assert "categories" in response.json()


class TestWebhook:

    @pytest.fixture
    def webhooks(self, stripe_gateway):
        service = WebhookService(stripe_gateway, AsyncMock(), AsyncMock(), AsyncMock(), AsyncMock())
        app.dependency_overrides[get_webhook_service] = lambda: service
        return service

    def test_missing_signature(self, client, webhooks):
        response = client.post("/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing stripe-signature header"}

    def test_bad_signature(self, client, webhooks, stripe_gateway):
        stripe_gateway.construct_event.side_effect = stripe.SignatureVerificationError("No signatures found", "t=1,v1=bad")

        response = client.post("/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=bad"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Webhook Error: No signatures found")

    def test_unhandled_event_is_acknowledged(self, client, webhooks, stripe_gateway):
        stripe_gateway.construct_event.return_value = {"id": "evt_1", "type": "invoice.paid", "data": {"object": {}}}

        response = client.post("/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=ok"})

        assert response.status_code == 200
        assert response.json() == {"received": True}


class TestSignup:

    def test_sets_cookie(self, client, tokens):
        auth = MagicMock()
        auth.signup = AsyncMock(return_value={
            "data": {"id": "cus_new"},
            "role": "Buyer",
            "tokenData": tokens.create_access_token("cus_new"),
        })
        app.dependency_overrides[get_auth_service] = lambda: auth

        response = client.post("/signup", json={"data": {
            "email": "new@example.com", "name": "New", "userName": "newbie", "password": "secret123",
        }})

        assert response.status_code == 201
        assert response.cookies.get("Authorization")
        assert auth.signup.await_args.args[0].userName == "newbie"

    def test_requires_envelope(self, client):
        app.dependency_overrides[get_auth_service] = lambda: MagicMock()

        response = client.post("/signup", json={"email": "new@example.com"})

        assert response.status_code == 400


class TestHealth:

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "neo4j": True}

    def test_degraded(self, client, neo4j):
        neo4j.error = RuntimeError("unreachable")

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["neo4j"] is False
