"""
Sellers API router - plans, payout accounts, followers and uploads
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_seller_service
from middleware.auth import get_current_user, require_verified_seller
from middleware.uploads import validate_image_files
from models.api.common import DataEnvelope
from models.api.seller import CreatePlansData, PayoutAccountRequest, UpdatePlansData
from services.seller_service import SellerService

public = APIRouter()
protected = APIRouter(dependencies=[Depends(get_current_user)])
verified = APIRouter(dependencies=[Depends(require_verified_seller)])


# =============================================================================
# AUTHENTICATED
# =============================================================================

@protected.post("/plans/{id}", status_code=201)
async def create_plans(
    id: str,
    body: DataEnvelope[CreatePlansData],
    sellers: SellerService = Depends(get_seller_service),
):
    """Create monthly plans; each plan is a recurring Stripe price"""
    return await sellers.create_subscribe_plans(id, body.data.subscriptionPlans)


@protected.get("/plans/{id}")
async def get_plans(id: str, sellers: SellerService = Depends(get_seller_service)):
    return {"subscriptionPlans": await sellers.get_subscription_plans(id)}


@protected.put("/plans")
async def update_plans(
    body: DataEnvelope[UpdatePlansData],
    sellers: SellerService = Depends(get_seller_service),
):
    """Rename plans and reprice them (old Stripe price deactivated)"""
    return await sellers.change_plans(body.data.plans)


@protected.get("/")
async def get_all_sellers(sellers: SellerService = Depends(get_seller_service)):
    return await sellers.get_all_sellers()


@protected.get("/followers/{id}")
async def get_followers(id: str, sellers: SellerService = Depends(get_seller_service)):
    return {"followers": await sellers.get_followers_count(id)}


@protected.post("/upload/sent/picture/{id}/{tipAmount}/{receiverId}", status_code=201)
async def upload_sent_picture(
    id: str,
    tipAmount: float,
    receiverId: str,
    sentPicture: UploadFile = File(...),
    sellers: SellerService = Depends(get_seller_service),
):
    validate_image_files([sentPicture], max_files=1)
    return await sellers.upload_sent_picture(sentPicture, id, tipAmount, receiverId)


# =============================================================================
# VERIFIED SELLER
# =============================================================================

@verified.get("/payout/{id}")
async def get_payout_accounts(id: str, sellers: SellerService = Depends(get_seller_service)):
    return await sellers.get_payout_accounts(id)


@verified.post("/payout/{id}/{payoutAccountId}")
async def delete_payout_account(
    id: str,
    payoutAccountId: str,
    sellers: SellerService = Depends(get_seller_service),
):
    await sellers.delete_payout_account(id, payoutAccountId)
    return {"message": "Your payout account has been deleted successfully!"}


@verified.post("/withdrawal/{id}/{payoutAccountId}")
async def request_withdraw(
    id: str,
    payoutAccountId: str,
    sellers: SellerService = Depends(get_seller_service),
):
    await sellers.request_withdraw(id, payoutAccountId)
    return {"message": "Your withdraw request is being processed!"}


@verified.post("/payout/{id}", status_code=201)
async def add_payout_account(
    id: str,
    body: PayoutAccountRequest,
    sellers: SellerService = Depends(get_seller_service),
):
    await sellers.add_payout_account(id, body)
    return {"message": "Your payout account has been added successfully!"}


# =============================================================================
# PUBLIC
# =============================================================================

@public.post("/upload/identitycard/{id}", status_code=201)
async def upload_identity_card(
    id: str,
    frontSide: Optional[UploadFile] = File(None),
    backSide: Optional[UploadFile] = File(None),
    sellers: SellerService = Depends(get_seller_service),
):
    sides = {name: file for name, file in (("frontSide", frontSide), ("backSide", backSide)) if file}
    validate_image_files(list(sides.values()), max_files=2)
    await sellers.upload_identity_card(sides, id)
    return {"message": "identity card has been uploaded successfully", "status": 200}


router = APIRouter(prefix="/sellers", tags=["sellers"])
router.include_router(public)
router.include_router(verified)
router.include_router(protected)
