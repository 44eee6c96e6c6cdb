"""
Pydantic models for user operations
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class UpdateUserData(BaseModel):
    """Profile update; omitted fields keep their current value"""
    name: Optional[str] = Field(default=None, min_length=2)
    userName: Optional[str] = Field(default=None, min_length=3)

    model_config = {"extra": "forbid"}


class PasswordData(BaseModel):
    password: str = Field(min_length=8)


class PostRef(BaseModel):
    id: str


class BuyPostsData(BaseModel):
    posts: List[PostRef] = Field(min_length=1)


class SubscribeData(BaseModel):
    sellerId: str
    subscriptionPlanId: str
    subscriptionPlanTitle: str
    subscriptionPlanPrice: float = Field(ge=0)


class UnlockSentPictureRequest(BaseModel):
    pictureId: str
    messageId: str
    tipAmount: float = Field(ge=0)
    chatRoomId: str
    sellerId: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    otp: str = Field(pattern=r"^[0-9]{4}$")
    hash: str = Field(min_length=1)


class ContactRequest(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    number: str = Field(pattern=r"^\+?[1-9]\d{1,14}$")
    message: str = Field(min_length=10, max_length=1000)


class DeviceTokenRequest(BaseModel):
    token: str = Field(min_length=1)


class CheckSubscriptionData(BaseModel):
    sellerId: str
