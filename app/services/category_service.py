"""Business logic for catalog categories."""
from typing import Dict, List

from ..repositories.category_repository import CategoryRepository
from ..validation import validate_category


class CategoryService:
    """Validates and applies category operations.

    Deleting a category never deletes games: games that referenced it are
    left without a category.
    """

    def __init__(self, repository: CategoryRepository) -> None:
        self._repo = repository

    def list_categories(self) -> List[Dict]:
        return self._repo.list_all()

    def create_category(self, payload: Dict) -> int:
        """Validate *payload* and insert it; returns the new id."""
        return self._repo.create(validate_category(payload))

    def delete_category(self, category_id: int) -> bool:
        return self._repo.delete(category_id)
