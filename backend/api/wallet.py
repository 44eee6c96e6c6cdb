"""
Wallet API router
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_wallet_service
from middleware.auth import get_current_user
from models.api.wallet import UpdateBalanceRequest
from services.wallet_service import WalletService

router = APIRouter(prefix="/wallet", tags=["wallet"], dependencies=[Depends(get_current_user)])


@router.get("/{userId}")
async def get_balance(userId: str, wallets: WalletService = Depends(get_wallet_service)):
    return await wallets.get_balance(userId)


@router.put("/{sellerId}")
async def update_balance(
    sellerId: str,
    body: UpdateBalanceRequest,
    wallets: WalletService = Depends(get_wallet_service),
):
    """Manual adjustment; the balance can never go below zero"""
    return await wallets.update_balance(sellerId, body.amount)
