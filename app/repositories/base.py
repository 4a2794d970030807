"""Repository base class used by all concrete repositories."""
import logging

from sqlalchemy.orm import Session


class BaseRepository:
    """Provides SQL persistence over a single SQLAlchemy session.

    The caller owns the session (see ``StoreConnection.session``); a
    repository only issues statements and commits its own writes.  Every
    statement goes through SQLAlchemy, so values are always bound
    parameters, never interpolated into SQL text.

    Errors are not caught here: a failed commit is rolled back and the
    original exception propagates so the HTTP layer can turn it into a 500.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._log = logging.getLogger(f'gamestore.repository.{type(self).__name__}')

    def _commit(self) -> None:
        """Commit the pending unit of work, rolling back on failure."""
        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
