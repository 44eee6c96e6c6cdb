"""
Pydantic models for wallet and notification requests
"""

from pydantic import BaseModel
from typing import Optional


class UpdateBalanceRequest(BaseModel):
    """Manual balance adjustment (positive credits, negative debits)"""
    amount: float


class MessageNotificationRequest(BaseModel):
    """Chat message push: "{userName} just sent you a message" """
    userName: str
    avatar: Optional[str] = None
