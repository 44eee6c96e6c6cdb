"""
Pydantic models for authentication
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional


class PlanInput(BaseModel):
    """Subscription plan offered at seller signup"""
    name: str = Field(min_length=1)
    price: float = Field(ge=0)


class SignupData(BaseModel):
    """
    Signup payload.

    name/userName/password and the seller-only phone/plans are checked by
    the auth service so the error names the missing field.
    """
    email: EmailStr
    password: Optional[str] = None
    name: Optional[str] = None
    userName: Optional[str] = None
    role: Literal["Buyer", "Seller"] = "Buyer"
    deviceToken: Optional[str] = None
    phone: Optional[str] = None
    plans: Optional[List[PlanInput]] = None


class LoginData(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    deviceToken: Optional[str] = None


class ChangePasswordData(BaseModel):
    oldPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=8)


class RefreshRequest(BaseModel):
    id: str
