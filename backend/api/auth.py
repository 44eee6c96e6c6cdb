"""
Authentication API router - signup, login, tokens
"""
from fastapi import APIRouter, Depends, Response

from api.dependencies import get_auth_service, get_token_service
from middleware.auth import get_current_user
from models.api.auth import ChangePasswordData, LoginData, RefreshRequest, SignupData
from models.api.common import DataEnvelope
from models.domain.user import User
from services.auth_service import AuthService
from services.tokens import COOKIE_NAME, TokenService

router = APIRouter(tags=["authentication"])


@router.post("/signup", status_code=201)
async def signup(
    body: DataEnvelope[SignupData],
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a buyer or seller

    Sets the Authorization cookie and sends the verification e-mail.
    """
    result = await auth.signup(body.data)
    response.set_cookie(**tokens.cookie_params(result["tokenData"]))
    return result


@router.post("/login")
async def login(
    body: DataEnvelope[LoginData],
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
):
    result = await auth.login(body.data)
    response.set_cookie(**tokens.cookie_params(result["tokenData"]))
    return result


@router.post("/refresh")
async def refresh(
    body: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
):
    return await auth.refresh_token(body.id)


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    """Clear device tokens and the Authorization cookie"""
    data = await auth.logout(current_user)
    response.delete_cookie(COOKIE_NAME)
    return {"data": data, "message": "logout"}


@router.post("/changePassword/{email}")
async def change_password(
    email: str,
    body: DataEnvelope[ChangePasswordData],
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    return await auth.change_password(email, body.data.oldPassword, body.data.newPassword)


@router.post("/resendVerificationEmail/{email}")
async def resend_verification_email(
    email: str,
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.resend_verification_email(email)
    return {"message": "Verification email sent"}
