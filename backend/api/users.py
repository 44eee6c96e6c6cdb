"""
Users API router

Public routes (e-mail confirmation, OTP login, contact, purchase check) are
registered before the authenticated ones so /users/{id} never shadows them.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile

from api.dependencies import get_token_service, get_users_service
from middleware.auth import get_current_user
from middleware.errors import ForbiddenError
from middleware.uploads import validate_image_files
from models.api.common import DataEnvelope
from models.api.user import (
    BuyPostsData,
    CheckSubscriptionData,
    ContactRequest,
    DeviceTokenRequest,
    PasswordData,
    SubscribeData,
    UnlockSentPictureRequest,
    UpdateUserData,
    VerifyOtpRequest,
)
from models.domain.user import User
from services.tokens import TokenService
from services.users_service import UsersService

public = APIRouter()
protected = APIRouter(dependencies=[Depends(get_current_user)])


# =============================================================================
# PUBLIC
# =============================================================================

@public.get("/confirmation/{token}")
async def confirm_email(token: str, users: UsersService = Depends(get_users_service)):
    await users.email_confirming(token)
    return {"message": "Email confirmed successfully"}


@public.get("/ai/generatePictures")
async def generate_pictures(
    color: str,
    category: str,
    users: UsersService = Depends(get_users_service),
):
    """Five 256x256 sample pictures from OpenAI"""
    return {"pictures": await users.generate_ai_pictures(color, category)}


@public.post("/generateOtp/{email}", status_code=201)
async def generate_otp(email: str, users: UsersService = Depends(get_users_service)):
    """Mail a 4-digit code; the returned hash must be sent back to /verifyOtp"""
    return {"hash": await users.generate_otp(email)}


@public.post("/verifyOtp/{email}")
async def verify_otp(
    email: str,
    body: VerifyOtpRequest,
    response: Response,
    users: UsersService = Depends(get_users_service),
    tokens: TokenService = Depends(get_token_service),
):
    result = await users.verify_otp(email, body.otp, body.hash)
    response.set_cookie(**tokens.cookie_params(result["tokenData"]))
    return result


@public.post("/contact", status_code=201)
async def contact(body: ContactRequest, users: UsersService = Depends(get_users_service)):
    await users.contact(body)
    return {"message": "Contact form submitted successfully"}


@public.get("/verify/checkForSale/{userId}/{postId}/{plan}")
async def check_for_sale(
    userId: str,
    postId: str,
    plan: str,
    users: UsersService = Depends(get_users_service),
):
    """Whether the user bought the album or subscribes to its seller with this plan"""
    return await users.has_access_to_post(userId, postId, plan)


# =============================================================================
# AUTHENTICATED
# =============================================================================

@protected.get("/plans/{id}")
async def get_seller_plans(id: str, users: UsersService = Depends(get_users_service)):
    return {"plans": await users.get_seller_plans(id)}


@protected.post("/buy/sent/{id}")
async def unlock_sent_picture(
    id: str,
    body: UnlockSentPictureRequest,
    users: UsersService = Depends(get_users_service),
):
    session = await users.unlock_sent_picture(id, body)
    return {"message": "Checkout session created", **session}


@protected.post("/buy/{id}")
async def buy_posts(
    id: str,
    body: DataEnvelope[BuyPostsData],
    users: UsersService = Depends(get_users_service),
):
    """Checkout session for the albums not bought yet"""
    session = await users.buy_posts(id, [post.id for post in body.data.posts])
    return {
        "message": "Checkout session created",
        "url": session["url"],
        "sessionId": session["sessionId"],
        "purchasedPosts": session["postIds"],
    }


@protected.post("/subscribe/{id}")
async def subscribe(
    id: str,
    body: DataEnvelope[SubscribeData],
    users: UsersService = Depends(get_users_service),
):
    return await users.subscribe(id, body.data)


@protected.post("/subscription/{id}/cancel/{sellerUserId}")
async def cancel_subscription(
    id: str,
    sellerUserId: str,
    users: UsersService = Depends(get_users_service),
):
    return await users.cancel_subscription(id, sellerUserId)


@protected.post("/signout/{id}")
async def sign_out(id: str, users: UsersService = Depends(get_users_service)):
    await users.sign_out(id)
    return {"message": "You have logged out successfully"}


async def _subscriptions_response(users: UsersService, user_id: str, seller_id: Optional[str]):
    result = {"subscriptions": await users.get_all_subscriptions_for_user(user_id)}
    if seller_id:
        result["isSubscribed"] = await users.check_for_subscription(user_id, seller_id)
    return result


@protected.get("/verify/checkForSubscription/{id}")
async def list_subscriptions(id: str, users: UsersService = Depends(get_users_service)):
    return await _subscriptions_response(users, id, None)


@protected.get("/verify/checkForSubscription/{id}/{sellerUserId}")
async def check_for_subscription(
    id: str,
    sellerUserId: str,
    users: UsersService = Depends(get_users_service),
):
    return await _subscriptions_response(users, id, sellerUserId)


@protected.post("/verify/checkForSubscription/{id}")
async def check_for_subscription_body(
    id: str,
    body: CheckSubscriptionData,
    users: UsersService = Depends(get_users_service),
):
    return await _subscriptions_response(users, id, body.sellerId)


@protected.post("/devices/token/{id}")
async def upload_device_token(
    id: str,
    body: DeviceTokenRequest,
    users: UsersService = Depends(get_users_service),
):
    await users.upload_device_token(id, body.token)
    return {"message": "token uploaded successfully"}


@protected.get("/followed/{id}/{role}")
async def get_followed_sellers(id: str, role: str, users: UsersService = Depends(get_users_service)):
    """Buyer: sellers followed. Seller: subscribers."""
    return await users.get_followed_sellers(id, role)


@protected.post("/upload/avatar/{id}")
async def upload_avatar(
    id: str,
    avatar: UploadFile = File(...),
    users: UsersService = Depends(get_users_service),
):
    validate_image_files([avatar], max_files=1)
    avatar_url = await users.upload_avatar(avatar, id)
    return {"message": "avatar has been uploaded successfully", "avatarUrl": avatar_url}


@protected.patch("/password/{email}")
async def change_password(
    email: str,
    body: DataEnvelope[PasswordData],
    current_user: User = Depends(get_current_user),
    users: UsersService = Depends(get_users_service),
):
    await users.change_password(email, body.data.password, requester_id=current_user.id)
    return {"message": "Password changed successfully"}


@protected.post("/desactivate/{id}")
async def desactivate_user(
    id: str,
    current_user: User = Depends(get_current_user),
    users: UsersService = Depends(get_users_service),
):
    if current_user.id != id:
        raise ForbiddenError("You are not authorized to deactivate this account")
    await users.desactivate_user(id)
    return {"message": "User account has been deactivated"}


@protected.get("/{id}")
async def get_user(id: str, users: UsersService = Depends(get_users_service)):
    return await users.find_user_by_id(id)


@protected.put("/{id}")
async def update_user(
    id: str,
    body: DataEnvelope[UpdateUserData],
    users: UsersService = Depends(get_users_service),
):
    return {"data": await users.update_user(id, body.data), "message": "updated"}


router = APIRouter(prefix="/users", tags=["users"])
router.include_router(public)
router.include_router(protected)
