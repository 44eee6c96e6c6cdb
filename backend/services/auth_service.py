"""
Auth service - signup, login and token handling

Signup order (no rollback once Stripe has been called):
1. Stripe customer (its id becomes the user id)
2. user + role node (+ wallet for sellers) in one write
3. sellers: one Stripe product + monthly price + plan node per plan
4. verification e-mail
"""
import logging
from typing import Dict, Optional

from middleware.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    wrap_unexpected,
)
from models.api.auth import LoginData, SignupData
from models.domain.seller import Plan
from models.domain.user import User, UserRole
from repositories.seller_repository import SellerRepository
from repositories.user_repository import UserRepository
from services.mailer import Mailer
from services.stripe_gateway import StripeGateway
from services.tokens import TokenService
from utils.password import hash_password, verify_password

logger = logging.getLogger(__name__)

# Wording used in the verification e-mail ("start your journey of ...")
_EMAIL_ROLE_WORDING = {
    UserRole.SELLER: "selling",
    UserRole.BUYER: "buying",
}


class AuthService:
    """Account creation, credentials and JWT issuing"""

    def __init__(
        self,
        user_repo: UserRepository,
        seller_repo: SellerRepository,
        stripe_gateway: StripeGateway,
        mailer: Mailer,
        tokens: TokenService,
    ):
        self.users = user_repo
        self.sellers = seller_repo
        self.stripe = stripe_gateway
        self.mailer = mailer
        self.tokens = tokens

    async def _send_verification(self, user: User, role: UserRole) -> None:
        token_data = self.tokens.create_email_token(user.email)
        await self.mailer.send_verification_email(
            user.email,
            user.user_name,
            token_data["token"],
            _EMAIL_ROLE_WORDING[role],
        )

    # =========================================================================
    # SIGNUP / LOGIN
    # =========================================================================

    async def signup(self, data: SignupData) -> Dict:
        """
        Register a buyer or seller.

        Returns:
            {tokenData, data: <user>, role}

        Raises:
            ConflictError: e-mail already registered
            BadRequestError: missing fields (sellers also need phone and plans)
        """
        with wrap_unexpected("sign up", email=data.email):
            if await self.users.exists_by_email(data.email):
                raise ConflictError(f"This email {data.email} already exists")

            if not data.name or not data.userName or not data.password:
                raise BadRequestError("Missing required fields: name, userName, or password")

            role = UserRole(data.role)
            if role == UserRole.SELLER and (not data.phone or not data.plans):
                raise BadRequestError("Seller signup requires phone and at least one plan")

            customer_id = await self.stripe.create_customer(data.email, data.name)
            user = User(
                id=customer_id,
                email=data.email,
                name=data.name,
                user_name=data.userName,
                password=hash_password(data.password),
                phone=data.phone,
            )

            if role == UserRole.SELLER:
                created = await self.users.create_seller(user, data.deviceToken)
                for plan_input in data.plans:
                    product = await self.stripe.create_product(plan_input.name)
                    price_id = await self.stripe.create_price(product["id"], plan_input.price, recurring=True)
                    await self.sellers.create_plan(
                        created.id, Plan(id=price_id, name=plan_input.name, price=plan_input.price)
                    )
            else:
                created = await self.users.create_buyer(user, data.deviceToken)

            await self._send_verification(created, role)

            logger.info(f"✅ {role.value} signup complete for {created.id}")
            return {
                "tokenData": self.tokens.create_access_token(created.id),
                "data": created.to_dict(),
                "role": role.value,
            }

    async def login(self, data: LoginData) -> Dict:
        """
        Check credentials and issue an access token.

        Raises:
            ForbiddenError: unknown e-mail or wrong password (same message)
        """
        with wrap_unexpected("log in", email=data.email):
            user = await self.users.find_by_email(data.email)
            if not user or not verify_password(data.password, user.password):
                raise ForbiddenError("Invalid email or password")

            if data.deviceToken:
                await self.users.set_device_token(user.id, data.deviceToken)

            role = await self.users.get_user_role(user.id)
            logger.info(f"🔑 User {user.id} logged in")
            return {
                "tokenData": self.tokens.create_access_token(user.id),
                "data": user.to_dict(),
                "role": role.value if role else None,
            }

    # =========================================================================
    # CREDENTIALS
    # =========================================================================

    async def change_password(self, email: str, old_password: str, new_password: str) -> Dict:
        with wrap_unexpected("change password", email=email):
            user = await self.users.find_by_email(email)
            if not user:
                raise NotFoundError("User not found")
            if not verify_password(old_password, user.password):
                raise ForbiddenError("Old password is incorrect")

            updated = await self.users.update(user.id, {"password": hash_password(new_password)})
            logger.info(f"🔐 Password changed for {user.id}")
            return updated.to_dict()

    async def resend_verification_email(self, email: str) -> None:
        with wrap_unexpected("resend verification email", email=email):
            user = await self.users.find_by_email(email)
            if not user:
                raise NotFoundError("User not found")
            role = await self.users.get_user_role(user.id) or UserRole.BUYER
            await self._send_verification(user, role)

    # =========================================================================
    # TOKENS / SESSION
    # =========================================================================

    async def refresh_token(self, user_id: Optional[str]) -> Dict:
        if not user_id:
            raise BadRequestError("User ID is required")
        with wrap_unexpected("generate refresh token", user_id=user_id):
            return {"tokenData": self.tokens.create_refresh_token(user_id)}

    async def logout(self, user: User) -> Dict:
        """Blank the user's device tokens; the route clears the cookie"""
        with wrap_unexpected("log out", user_id=user.id):
            await self.users.clear_device_tokens(user.id)
            logger.info(f"👋 User {user.id} logged out")
            return user.to_dict()
