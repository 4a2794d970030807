"""Repository for catalog games (``games`` left-joined with ``categories``)."""
from typing import Dict, List, Optional

from sqlalchemy import delete, select, update

from database import Category, Game, game_to_dict, utcnow
from .base import BaseRepository

GAME_COLUMNS = (
    'title', 'description', 'genre', 'platform', 'price',
    'release_date', 'rating', 'image_url', 'category_id',
)


class GameRepository(BaseRepository):
    """Reads and writes rows of the ``games`` table.

    Read methods return plain dicts (see :func:`database.game_to_dict`) with
    the joined ``category_name`` so callers never hold ORM instances beyond
    the session lifetime.
    """

    def _joined(self):
        return (
            select(Game, Category.name)
            .outerjoin(Category, Game.category_id == Category.id)
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_with_category(self) -> List[Dict]:
        """Return every game, newest first."""
        stmt = self._joined().order_by(Game.created_at.desc(), Game.id.desc())
        return [game_to_dict(game, name) for game, name in self._session.execute(stmt)]

    def find(self, game_id: int) -> Optional[Dict]:
        """Return the game with *game_id*, or ``None``."""
        row = self._session.execute(self._joined().where(Game.id == game_id)).first()
        if row is None:
            return None
        game, name = row
        return game_to_dict(game, name)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, fields: Dict) -> int:
        """Insert a game and return its generated id."""
        game = Game(**{k: fields.get(k) for k in GAME_COLUMNS})
        self._session.add(game)
        self._commit()
        self._log.info("Created game %s (%s)", game.id, game.title)
        return game.id

    def update(self, game_id: int, fields: Dict) -> bool:
        """Overwrite every column of *game_id*.  Returns ``True`` if a row matched."""
        values = {k: fields.get(k) for k in GAME_COLUMNS}
        values['updated_at'] = utcnow()
        result = self._session.execute(
            update(Game).where(Game.id == game_id).values(**values)
        )
        self._commit()
        return result.rowcount > 0

    def delete(self, game_id: int) -> bool:
        """Remove *game_id*.  Returns ``True`` if a row was deleted."""
        result = self._session.execute(delete(Game).where(Game.id == game_id))
        self._commit()
        return result.rowcount > 0
