"""
Category Repository
"""
from typing import List

from helpdesk.models.schemas import Category
from helpdesk.repositories.base_repository import BaseRepository


class CategoryRepository(BaseRepository):
    """Repository for categories table operations."""

    table_name = "categories"

    async def list_active(self) -> List[Category]:
        def query():
            return self.table().select("*").eq("is_active", True).order("id").execute()

        response = await self._run("list categories", query)
        return [Category.model_validate(row) for row in self._rows(response)]
