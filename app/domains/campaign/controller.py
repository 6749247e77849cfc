"""Campaign API controller with FastAPI endpoints."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.campaign.service import CampaignService
from app.exceptions.campaign import CampaignNotFoundError
from app.schemas.base import ResponseSchema
from app.schemas.campaign import (
    CampaignCreate,
    CampaignFilter,
    CampaignListResponse,
    CampaignResponse,
    CampaignUpdate,
    ClickReport,
    DeliveryRecordResponse,
    SendResultResponse,
)
from app.shared.pagination import PaginationParams, page_envelope
from models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/campaigns",
    tags=["campaigns"],
    dependencies=[Depends(validate_token)],
)

# Service workers report clicks without credentials
public_router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.post("/", response_model=ResponseSchema, status_code=201)
async def create_campaign(
    campaign_data: CampaignCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a draft campaign, or a scheduled one when ``scheduled_at`` is set."""

    service = CampaignService(db)
    campaign = await service.create_campaign(campaign_data=campaign_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Campaign created successfully",
        data=CampaignResponse.model_validate(campaign).model_dump(mode="json"),
    )


@router.get("/", response_model=CampaignListResponse)
async def get_campaigns(
    status: Optional[str] = Query(None, description="Filter by campaign status"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of campaigns."""

    service = CampaignService(db)
    result = await service.get_campaigns_list(
        filters=CampaignFilter(status=status),
        pagination=PaginationParams(page=page, size=size),
    )

    return CampaignListResponse(
        campaigns=[CampaignResponse.model_validate(c) for c in result["items"]],
        total=result["total"],
        page=result["page"],
        size=result["size"],
        has_next=result["has_next"],
        has_prev=result["has_prev"],
    )


@router.get("/{campaign_id}", response_model=ResponseSchema)
async def get_campaign(
    campaign_id: UUID = Path(..., description="Campaign ID"),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific campaign with its delivery counters."""

    service = CampaignService(db)
    campaign = await service.get_campaign(campaign_id)
    if not campaign:
        raise CampaignNotFoundError()

    return ResponseSchema(
        status="success",
        message="Campaign retrieved successfully",
        data=CampaignResponse.model_validate(campaign).model_dump(mode="json"),
    )


@router.put("/{campaign_id}", response_model=ResponseSchema)
async def update_campaign(
    campaign_id: UUID = Path(..., description="Campaign ID"),
    campaign_data: CampaignUpdate = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Update a draft or scheduled campaign."""

    service = CampaignService(db)
    campaign = await service.update_campaign(campaign_id, campaign_data)

    return ResponseSchema(
        status="success",
        message="Campaign updated successfully",
        data=CampaignResponse.model_validate(campaign).model_dump(mode="json"),
    )


@router.delete("/{campaign_id}", response_model=ResponseSchema)
async def delete_campaign(
    campaign_id: UUID = Path(..., description="Campaign ID"),
    db: AsyncSession = Depends(get_db),
):
    """Delete a campaign that is not currently sending."""

    service = CampaignService(db)
    await service.delete_campaign(campaign_id)

    return ResponseSchema(status="success", message="Campaign deleted successfully", data=None)


@router.post("/{campaign_id}/send", response_model=ResponseSchema)
async def send_campaign(
    request: Request,
    campaign_id: UUID = Path(..., description="Campaign ID"),
    db: AsyncSession = Depends(get_db),
):
    """Send a campaign now and return the definitive delivery tally."""

    logger.info(
        f"Send requested for campaign {campaign_id} "
        f"(request {getattr(request.state, 'request_id', None)})"
    )
    service = CampaignService(db)
    result = await service.send_campaign(campaign_id)

    return ResponseSchema(
        status="success",
        message=f"Campaign {result.status}: {result.sent} sent, {result.failed} failed",
        data=SendResultResponse.model_validate(result.to_dict()).model_dump(mode="json"),
    )


@router.get("/{campaign_id}/deliveries", response_model=ResponseSchema)
async def get_campaign_deliveries(
    campaign_id: UUID = Path(..., description="Campaign ID"),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Get the per-subscriber delivery records of a campaign."""

    service = CampaignService(db)
    result = await service.get_deliveries_list(
        campaign_id, pagination=PaginationParams(page=page, size=size)
    )

    return ResponseSchema(
        status="success",
        message="Deliveries retrieved successfully",
        data=page_envelope(result, "deliveries", DeliveryRecordResponse),
    )


async def _read_click_report(request: Request) -> Optional[ClickReport]:
    """Parse the optional click body; anything unreadable counts as no body."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return ClickReport.model_validate_json(raw)
    except ValueError:
        logger.debug("Ignoring unreadable click body")
        return None


@public_router.post("/{campaign_id}/click", response_model=ResponseSchema)
async def record_click(
    request: Request,
    campaign_id: str = Path(..., description="Campaign ID"),
    db: AsyncSession = Depends(get_db),
):
    """Record a notification click. Always succeeds, even for unknown campaigns
    or a malformed body."""

    report = await _read_click_report(request)

    try:
        parsed_id = UUID(campaign_id)
    except ValueError:
        logger.debug(f"Ignoring click for malformed campaign id {campaign_id!r}")
        return ResponseSchema(status="success", message="Click recorded", data=None)

    service = CampaignService(db)
    await service.record_click(parsed_id, endpoint=report.endpoint if report else None)

    return ResponseSchema(status="success", message="Click recorded", data=None)
