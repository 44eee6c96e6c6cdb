"""
Authentication dependencies

The access token is read from the Authorization cookie, falling back to an
"Authorization: Bearer <token>" header.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError

from api.dependencies import get_seller_repository, get_token_service, get_user_repository
from middleware.errors import ForbiddenError, UnauthorizedError
from models.domain.user import User
from repositories.seller_repository import SellerRepository
from repositories.user_repository import UserRepository
from services.tokens import ACCESS, COOKIE_NAME, TokenService

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        # Cookies written as "Bearer <jwt>" are accepted too
        return token.split(" ", 1)[1] if token.startswith("Bearer ") else token

    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_current_user(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Resolve the signed-in user (required - raises 401 if not authenticated)

    Raises:
        UnauthorizedError: missing token, invalid/expired token, or unknown user
    """
    token = extract_token(request)
    if not token:
        raise UnauthorizedError("Authentication token missing")

    try:
        payload = tokens.verify(token, ACCESS)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

    user = await users.find_by_id(payload.get("id", ""))
    if not user:
        raise UnauthorizedError("Wrong authentication token")

    request.state.user_id = user.id
    return user


async def require_verified_seller(
    id: str,
    user: User = Depends(get_current_user),
    sellers: SellerRepository = Depends(get_seller_repository),
) -> User:
    """
    Guard for seller-only routes; the path parameter `id` must be a verified seller

    Raises:
        ForbiddenError: not a seller, or not verified yet
    """
    seller = await sellers.find_by_user_id(id)
    if not seller:
        raise ForbiddenError("this user is not a seller")
    if not seller.verified:
        raise ForbiddenError("this user is not verified yet")
    return user
