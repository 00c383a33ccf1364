from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from notenexus.models.tip import TipStatus
from notenexus.models.user import User
from notenexus.modules.auth.dependencies import (
    get_current_admin,
    get_current_user,
    get_optional_current_user,
)
from notenexus.schemas.base import BulkModerationResponse, MessageResponse
from notenexus.schemas.tips import (
    PendingTipsResponse,
    TipBulkModerate,
    TipCreate,
    TipListResponse,
    TipModerate,
    TipResponse,
)
from notenexus.services.moderation_service import TIPS, ModerationService, get_moderation_service


router = APIRouter()


@router.post("/tip", response_model=TipResponse, status_code=status.HTTP_201_CREATED)
async def create_tip(
    data: TipCreate,
    current_user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    """Post a study tip; it stays PENDING until an admin reviews it"""
    return await service.submit_tip(current_user, data.title, data.content)


@router.get("/tip/all", response_model=TipListResponse)
async def list_tips(service: ModerationService = Depends(get_moderation_service)):
    return {"tips": await service.list_approved_tips()}


@router.get("/tip/pending", response_model=PendingTipsResponse)
async def pending_tips(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    result = await service.list_pending(TIPS, page, limit)
    return {**result, "tips": result["items"]}


@router.get("/tip/{tip_id}", response_model=TipResponse)
async def get_tip(
    tip_id: str,
    viewer: Optional[User] = Depends(get_optional_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    return await service.get_visible(TIPS, tip_id, viewer)


@router.put("/tip/approve/{tip_id}", response_model=TipResponse)
async def moderate_tip(
    tip_id: str,
    data: TipModerate,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    """Set a tip to APPROVED or REJECTED"""
    return await service.moderate(TIPS, tip_id, admin, status=TipStatus(data.status))


@router.put("/tip/approve", response_model=BulkModerationResponse)
async def moderate_tips_bulk(
    data: TipBulkModerate,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    """Moderate the still-pending tips among `tipIds`; others are skipped"""
    count = await service.moderate_bulk(TIPS, data.tip_ids, admin, status=TipStatus(data.status))
    return {"message": f"{count} tip(s) {data.status.lower()}", "count": count}


@router.delete("/tip/{tip_id}", response_model=MessageResponse)
async def delete_tip(
    tip_id: str,
    current_user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    await service.delete(TIPS, tip_id, current_user)
    return {"message": "Tip deleted successfully"}
