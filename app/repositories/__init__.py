"""Repository package: expose all concrete repositories from one import."""
from .game_repository import GameRepository
from .category_repository import CategoryRepository

__all__ = [
    'GameRepository',
    'CategoryRepository',
]
