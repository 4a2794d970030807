"""Repository for catalog categories."""
from typing import Dict, List

from sqlalchemy import delete, select, update

from database import Category, Game, category_to_dict
from .base import BaseRepository


class CategoryRepository(BaseRepository):
    """Reads and writes rows of the ``categories`` table."""

    def list_all(self) -> List[Dict]:
        """Return all categories ordered by name."""
        stmt = select(Category).order_by(Category.name.asc(), Category.id.asc())
        return [category_to_dict(c) for c in self._session.scalars(stmt)]

    def create(self, fields: Dict) -> int:
        """Insert a category and return its generated id."""
        category = Category(name=fields['name'], description=fields.get('description'))
        self._session.add(category)
        self._commit()
        self._log.info("Created category %s (%s)", category.id, category.name)
        return category.id

    def delete(self, category_id: int) -> bool:
        """Detach games from *category_id*, then delete it.

        Games that referenced the category keep existing with
        ``category_id`` set to ``NULL``.  Both statements commit together.

        Returns:
            ``True`` if the category existed and was removed.
        """
        detached = self._session.execute(
            update(Game).where(Game.category_id == category_id).values(category_id=None)
        )
        result = self._session.execute(delete(Category).where(Category.id == category_id))
        self._commit()
        if result.rowcount:
            self._log.info("Deleted category %s (%d games detached)",
                           category_id, detached.rowcount)
        return result.rowcount > 0
