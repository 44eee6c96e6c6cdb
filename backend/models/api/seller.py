"""
Pydantic models for seller operations
"""

from pydantic import BaseModel, Field
from typing import List


class SubscriptionPlanInput(BaseModel):
    subscriptionPlanTitle: str = Field(min_length=3)
    subscriptionPlanPrice: float = Field(ge=0)


class CreatePlansData(BaseModel):
    subscriptionPlans: List[SubscriptionPlanInput] = Field(min_length=1)


class PlanUpdate(BaseModel):
    id: str
    name: str = Field(min_length=3)
    price: float = Field(ge=0)


class UpdatePlansData(BaseModel):
    plans: List[PlanUpdate] = Field(min_length=1)


class PayoutAccountRequest(BaseModel):
    bankCountry: str = Field(min_length=2)
    city: str = Field(min_length=2)
    bankName: str = Field(min_length=2)
    accountNumber: str = Field(pattern=r"^[0-9]{8,20}$")
    swift: str = Field(pattern=r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$")
