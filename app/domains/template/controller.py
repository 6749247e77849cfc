"""Template API controller."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.template.service import TemplateService
from app.exceptions.campaign import TemplateNotFoundError
from app.schemas.base import ResponseSchema
from app.schemas.template import TemplateCreate, TemplateResponse
from app.shared.pagination import PaginationParams, page_envelope
from models.user import User


router = APIRouter(
    prefix="/api/templates",
    tags=["templates"],
    dependencies=[Depends(validate_token)],
)


@router.post("/", response_model=ResponseSchema, status_code=201)
async def create_template(
    template_data: TemplateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new template."""

    service = TemplateService(db)
    template = await service.create_template(template_data, user_id=current_user.id)

    return ResponseSchema(
        status="success",
        message="Template created successfully",
        data=TemplateResponse.model_validate(template).model_dump(mode="json"),
    )


@router.get("/", response_model=ResponseSchema)
async def get_templates(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of templates."""

    service = TemplateService(db)
    result = await service.get_templates_list(PaginationParams(page=page, size=size))

    return ResponseSchema(
        status="success",
        message="Templates retrieved successfully",
        data=page_envelope(result, "templates", TemplateResponse),
    )


@router.get("/{template_id}", response_model=ResponseSchema)
async def get_template(
    template_id: UUID = Path(..., description="Template ID"),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific template by ID."""

    service = TemplateService(db)
    template = await service.get_template(template_id)
    if not template:
        raise TemplateNotFoundError()

    return ResponseSchema(
        status="success",
        message="Template retrieved successfully",
        data=TemplateResponse.model_validate(template).model_dump(mode="json"),
    )


@router.delete("/{template_id}", response_model=ResponseSchema)
async def delete_template(
    template_id: UUID = Path(..., description="Template ID"),
    db: AsyncSession = Depends(get_db),
):
    """Delete a template."""

    service = TemplateService(db)
    await service.delete_template(template_id)

    return ResponseSchema(status="success", message="Template deleted successfully", data=None)
