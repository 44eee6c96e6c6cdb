"""
Admin API router - seller identity review
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_admin_service
from middleware.auth import get_current_user
from services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_user)])


@router.get("/identityCard/{id}")
async def get_identity_card(id: str, admin: AdminService = Depends(get_admin_service)):
    return await admin.get_seller_identity_card(id)


@router.get("/sellers/unverified")
async def get_unverified_sellers(admin: AdminService = Depends(get_admin_service)):
    return await admin.get_unverified_sellers()


@router.patch("/sellers/{id}/verify")
async def verify_seller(id: str, admin: AdminService = Depends(get_admin_service)):
    return await admin.verify_seller(id)
