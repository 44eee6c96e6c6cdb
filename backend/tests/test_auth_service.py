"""
Test: Auth Service
==================

Key behaviors tested:
- Duplicate e-mail is a conflict, checked before anything else
- Missing name/userName/password and seller-only fields are rejected
- Buyer and seller signup create the right graph shape and send the e-mail
- Login never tells which of e-mail or password was wrong
"""

from unittest.mock import AsyncMock

import pytest

from conftest import make_user
from middleware.errors import BadRequestError, ConflictError, ForbiddenError
from models.api.auth import LoginData, PlanInput, SignupData
from models.domain.user import UserRole
from services.auth_service import AuthService
from services.tokens import ACCESS, REFRESH
from utils.password import hash_password


@pytest.fixture
def users():
    repo = AsyncMock()
    repo.exists_by_email.return_value = False
    repo.create_buyer.side_effect = lambda user, token=None: user
    repo.create_seller.side_effect = lambda user, token=None: user
    return repo


@pytest.fixture
def sellers():
    return AsyncMock()


@pytest.fixture
def auth(users, sellers, stripe_gateway, mailer, tokens):
    stripe_gateway.create_customer.return_value = "cus_new"
    stripe_gateway.create_product.return_value = {"id": "prod_1"}
    stripe_gateway.create_price.return_value = "price_1"
    return AuthService(users, sellers, stripe_gateway, mailer, tokens)


class TestSignup:

    async def test_duplicate_email(self, auth, users, stripe_gateway):
        users.exists_by_email.return_value = True

        with pytest.raises(ConflictError, match="This email taken@example.com already exists"):
            await auth.signup(SignupData(email="taken@example.com", name="A", userName="aa", password="secret123"))

        stripe_gateway.create_customer.assert_not_awaited()

    async def test_missing_fields(self, auth, users):
        with pytest.raises(BadRequestError, match="Missing required fields"):
            await auth.signup(SignupData(email="new@example.com", name="A", password="secret123"))

        users.create_buyer.assert_not_awaited()

    async def test_seller_requires_phone_and_plans(self, auth):
        data = SignupData(
            email="seller@example.com", name="S", userName="ss", password="secret123",
            role="Seller", phone="+33600000000",
        )

        with pytest.raises(BadRequestError, match="Seller signup requires phone and at least one plan"):
            await auth.signup(data)

    async def test_buyer_signup(self, auth, users, mailer, tokens):
        result = await auth.signup(SignupData(
            email="new@example.com", name="New", userName="newbie", password="secret123", deviceToken="fcm-1",
        ))

        created = users.create_buyer.await_args.args[0]
        assert created.id == "cus_new"
        assert created.password != "secret123"
        assert users.create_buyer.await_args.args[1] == "fcm-1"

        assert result["role"] == "Buyer"
        assert result["data"]["id"] == "cus_new"
        assert "password" not in result["data"]
        assert tokens.verify(result["tokenData"]["token"], ACCESS)["id"] == "cus_new"

        email, user_name, _, wording = mailer.send_verification_email.await_args.args
        assert (email, user_name, wording) == ("new@example.com", "newbie", "buying")

    async def test_seller_signup_creates_plans(self, auth, users, sellers, stripe_gateway, mailer):
        result = await auth.signup(SignupData(
            email="seller@example.com", name="S", userName="ss", password="secret123",
            role="Seller", phone="+33600000000",
            plans=[PlanInput(name="Gold", price=9.99), PlanInput(name="Silver", price=4.99)],
        ))

        assert result["role"] == "Seller"
        users.create_seller.assert_awaited_once()
        assert stripe_gateway.create_price.await_count == 2
        stripe_gateway.create_price.assert_any_await("prod_1", 9.99, recurring=True)

        plans = [call.args[1] for call in sellers.create_plan.await_args_list]
        assert [(p.id, p.name, p.price) for p in plans] == [("price_1", "Gold", 9.99), ("price_1", "Silver", 4.99)]
        assert mailer.send_verification_email.await_args.args[3] == "selling"


class TestLogin:

    async def test_wrong_password(self, auth, users):
        users.find_by_email.return_value = make_user("cus_1", password=hash_password("right-password"))

        with pytest.raises(ForbiddenError, match="Invalid email or password"):
            await auth.login(LoginData(email="cus_1@example.com", password="wrong-password"))

    async def test_unknown_email(self, auth, users):
        users.find_by_email.return_value = None

        with pytest.raises(ForbiddenError, match="Invalid email or password"):
            await auth.login(LoginData(email="nobody@example.com", password="whatever"))

    async def test_success_sets_device_token(self, auth, users, tokens):
        users.find_by_email.return_value = make_user("cus_1", password=hash_password("right-password"))
        users.get_user_role.return_value = UserRole.SELLER

        result = await auth.login(LoginData(email="cus_1@example.com", password="right-password", deviceToken="fcm-2"))

        users.set_device_token.assert_awaited_once_with("cus_1", "fcm-2")
        assert result["role"] == "Seller"
        assert tokens.verify(result["tokenData"]["token"])["id"] == "cus_1"


class TestTokens:

    async def test_refresh_requires_id(self, auth):
        with pytest.raises(BadRequestError, match="User ID is required"):
            await auth.refresh_token("")

    async def test_refresh_token_kind(self, auth, tokens):
        result = await auth.refresh_token("cus_1")

        assert tokens.verify(result["tokenData"]["token"], REFRESH)["id"] == "cus_1"

    async def test_change_password_checks_old(self, auth, users):
        users.find_by_email.return_value = make_user("cus_1", password=hash_password("old-password"))

        with pytest.raises(ForbiddenError, match="Old password is incorrect"):
            await auth.change_password("cus_1@example.com", "not-it", "new-password")
        users.update.assert_not_awaited()
