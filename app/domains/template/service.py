"""Template service layer."""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import desc, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.campaign import TemplateNotFoundError
from app.schemas.template import TemplateCreate
from app.shared.pagination import PaginationParams, paginate
from models.campaign import Campaign
from models.rss_feed import RssFeed
from models.template import Template


class TemplateService:
    """Service class for notification templates."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_template(self, template_data: TemplateCreate, user_id: Optional[UUID] = None) -> Template:
        """Create a new template."""

        template = Template(**template_data.model_dump(), created_by=user_id)

        try:
            self.db.add(template)
            await self.db.commit()
            await self.db.refresh(template)
            return template
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create template: {str(e)}")

    async def get_template(self, template_id: UUID) -> Optional[Template]:
        """Get a template by ID."""
        result = await self.db.execute(select(Template).where(Template.id == template_id))
        return result.scalar_one_or_none()

    async def get_templates_list(self, pagination: Optional[PaginationParams] = None) -> Dict[str, Any]:
        """Get paginated list of templates, newest first."""
        stmt = select(Template).order_by(desc(Template.created_at))
        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def delete_template(self, template_id: UUID) -> bool:
        """Delete a template. Campaigns keep the content they copied from it.

        Feeds and campaigns linking the template are unlinked in the same
        transaction; SQLite does not enforce ``ON DELETE SET NULL`` by default.
        """

        template = await self.get_template(template_id)
        if not template:
            raise TemplateNotFoundError()

        try:
            for model in (RssFeed, Campaign):
                await self.db.execute(
                    update(model)
                    .where(model.template_id == template_id)
                    .values(template_id=None)
                    .execution_options(synchronize_session=False)
                )
            await self.db.delete(template)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete template: {str(e)}")
