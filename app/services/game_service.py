"""Business logic for catalog games."""
from typing import Dict, List, Optional

from ..repositories.game_repository import GameRepository
from ..validation import validate_game


class GameService:
    """Validates and applies game operations, delegating persistence to
    :class:`~app.repositories.game_repository.GameRepository`.

    Rules
    -----
    * Create and update share one contract (:func:`app.validation.validate_game`);
      an invalid payload raises before any statement reaches the store.
    * ``rating`` defaults to 0 when omitted.
    * Update replaces the full field set (no partial patches).
    """

    def __init__(self, repository: GameRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_games(self) -> List[Dict]:
        """Return all games with their category name, newest first."""
        return self._repo.list_with_category()

    def get_game(self, game_id: int) -> Optional[Dict]:
        """Return the game dict for *game_id*, or ``None``."""
        return self._repo.find(game_id)

    def create_game(self, payload: Dict) -> int:
        """Validate *payload* and insert it.

        Returns:
            The generated game id.

        Raises:
            ValidationError: when a required field is missing or malformed.
        """
        return self._repo.create(validate_game(payload))

    def update_game(self, game_id: int, payload: Dict) -> bool:
        """Validate *payload* and overwrite *game_id* with it.

        Returns:
            ``True`` if the game existed; ``False`` otherwise.
        """
        return self._repo.update(game_id, validate_game(payload))

    def delete_game(self, game_id: int) -> bool:
        """Delete *game_id*.  Returns ``True`` if it existed."""
        return self._repo.delete(game_id)
