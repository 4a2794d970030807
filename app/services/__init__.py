"""Services package: expose all concrete services from one import."""
from .game_service import GameService
from .category_service import CategoryService

__all__ = [
    'GameService',
    'CategoryService',
]
