#!/usr/bin/env python3
"""
Database models and connection handling for GameStore.
Holds the game/category tables and the managed store connection used by the API.
"""

import logging
import os
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Optional
from urllib.parse import quote_plus

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Integer, Numeric,
                        String, Text, create_engine, text)
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger('gamestore.database')

# MySQL client error codes that mean the server went away or was never reached.
LOST_CONNECTION_CODES = {2003, 2006, 2013, 2055}

STATE_CLOSED = 'closed'
STATE_OPEN = 'open'
STATE_DEGRADED = 'degraded'
STATE_RECONNECTING = 'reconnecting'

DEFAULT_RETRY_INTERVAL = 5.0

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Category(Base):
    """A catalog category; names are unique by convention only."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Game(Base):
    """A game listed in the storefront."""
    __tablename__ = "games"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    genre = Column(String(100), nullable=False)
    platform = Column(String(255), nullable=False)  # comma-separated, e.g. "PC,PS5"
    price = Column(Numeric(10, 2), nullable=False, default=0)
    release_date = Column(Date, nullable=True)
    rating = Column(Numeric(3, 1), default=0)  # 0-10
    image_url = Column(String(500), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    category = relationship("Category")


def _plain(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def game_to_dict(game: Game, category_name: Optional[str] = None) -> Dict:
    """Render a Game row as a JSON-ready dict including ``category_name``."""
    return {
        'id': game.id,
        'title': game.title,
        'description': game.description,
        'genre': game.genre,
        'platform': game.platform,
        'price': _plain(game.price),
        'release_date': _plain(game.release_date),
        'rating': _plain(game.rating),
        'image_url': game.image_url,
        'category_id': game.category_id,
        'created_at': _plain(game.created_at),
        'updated_at': _plain(game.updated_at),
        'category_name': category_name,
    }


def category_to_dict(category: Category) -> Dict:
    return {
        'id': category.id,
        'name': category.name,
        'description': category.description,
        'created_at': _plain(category.created_at),
    }


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def load_store_settings() -> Dict:
    """Read store settings from the environment (``.env`` is loaded by callers)."""
    return {
        'host': os.getenv('DB_HOST', 'localhost'),
        'user': os.getenv('DB_USER', 'root'),
        'password': os.getenv('DB_PASSWORD', ''),
        'database': os.getenv('DB_NAME', 'gamestore_db'),
        'port': int(os.getenv('DB_PORT', '3306')),
        'url': os.getenv('DATABASE_URL', ''),
        'retry_interval': float(os.getenv('DB_RETRY_INTERVAL', str(DEFAULT_RETRY_INTERVAL))),
        'pool_size': int(os.getenv('DB_POOL_SIZE', '5')),
        'max_overflow': int(os.getenv('DB_MAX_OVERFLOW', '10')),
    }


def build_database_url(settings: Dict) -> str:
    """Return the SQLAlchemy URL for *settings*; ``url`` wins when set."""
    if settings.get('url'):
        return settings['url']
    return (
        f"mysql+pymysql://{quote_plus(settings['user'])}:{quote_plus(settings['password'])}"
        f"@{settings['host']}:{settings['port']}/{settings['database']}?charset=utf8mb4"
    )


def _engine_options(url: str, pool_size: int, max_overflow: int, pool_recycle: int) -> Dict:
    if url.startswith('sqlite'):
        # One shared connection so in-memory databases survive across sessions
        return {'connect_args': {'check_same_thread': False}, 'poolclass': StaticPool}
    return {
        'pool_size': pool_size,
        'max_overflow': max_overflow,
        'pool_pre_ping': True,
        'pool_recycle': pool_recycle,
    }


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class StoreUnavailableError(RuntimeError):
    """Raised when a session is requested while the store is not connected."""


def is_connection_lost(exc: BaseException) -> bool:
    """Return True when *exc* means the connection to the store was lost."""
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    args = getattr(exc.orig, 'args', None) or ()
    return bool(args) and args[0] in LOST_CONNECTION_CODES


def is_connectivity_error(exc: BaseException) -> bool:
    """Errors worth retrying: the server could not be reached or went away."""
    return isinstance(exc, OperationalError) or is_connection_lost(exc)


# ---------------------------------------------------------------------------
# Managed connection
# ---------------------------------------------------------------------------

class StoreConnection:
    """Owned handle on a bounded, health-checked connection pool.

    Lifecycle::

        closed -> open -> degraded -> reconnecting -> open
                               ^-----------'

    ``open()`` connects once; when the store cannot be reached the handle
    goes ``degraded`` and a daemon thread retries every ``retry_interval``
    seconds until a ping succeeds or :meth:`close` is called.  While the
    handle is not ``open``, :meth:`session` fails fast with
    :class:`StoreUnavailableError`; nothing is queued.

    A connection loss seen during a query puts the handle back into the
    reconnect cycle.  Any other store error is re-raised to the caller.  If
    the reconnect loop itself hits a non-connectivity error the handle is
    closed for good and every later :meth:`session` raises.
    """

    def __init__(self, url: str, retry_interval: float = DEFAULT_RETRY_INTERVAL,
                 pool_size: int = 5, max_overflow: int = 10, pool_recycle: int = 3600,
                 engine_factory=create_engine):
        self.url = url
        self.retry_interval = retry_interval
        self._engine_factory = engine_factory
        self._engine_kwargs = _engine_options(url, pool_size, max_overflow, pool_recycle)
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.engine = None
        self.SessionLocal = None
        self.state = STATE_CLOSED
        self.fatal_error: Optional[BaseException] = None

    @classmethod
    def from_settings(cls, settings: Dict) -> 'StoreConnection':
        return cls(
            build_database_url(settings),
            retry_interval=settings.get('retry_interval', DEFAULT_RETRY_INTERVAL),
            pool_size=settings.get('pool_size', 5),
            max_overflow=settings.get('max_overflow', 10),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> bool:
        """Connect to the store.

        Returns:
            ``True`` when connected, ``False`` when the store is unreachable
            and the reconnect loop has been started.

        Raises:
            Any non-connectivity error (bad URL, missing driver, ...).
        """
        with self._lock:
            if self.engine is None:
                self.engine = self._engine_factory(self.url, **self._engine_kwargs)
                self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False,
                                                 expire_on_commit=False)
            self._stop.clear()
            self.fatal_error = None
        try:
            self._check()
        except Exception as exc:
            if not is_connectivity_error(exc):
                raise
            logger.error("Could not connect to the store: %s", exc)
            logger.info("Retrying store connection in %s seconds...", self.retry_interval)
            self._schedule_reconnect()
            return False
        with self._lock:
            self.state = STATE_OPEN
        logger.info("Connected to the store")
        return True

    def close(self) -> None:
        """Stop the reconnect loop and release every pooled connection."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.retry_interval + 1)
        with self._lock:
            self._thread = None
            if self.engine is not None:
                self.engine.dispose()
            self.state = STATE_CLOSED

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables initialized successfully")

    @property
    def is_open(self) -> bool:
        return self.state == STATE_OPEN

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def _check(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def ping(self) -> bool:
        """Actively check connectivity; never raises for store errors."""
        if self.state != STATE_OPEN:
            return False
        try:
            self._check()
            return True
        except DBAPIError as exc:
            logger.error("Store ping failed: %s", exc)
            if is_connectivity_error(exc):
                self.mark_lost(exc)
            return False

    def mark_lost(self, exc: Optional[BaseException] = None) -> None:
        """Record a lost connection and start reconnecting."""
        with self._lock:
            if self.state != STATE_OPEN:
                return
            logger.warning("Store connection lost: %s", exc)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        with self._lock:
            self.state = STATE_DEGRADED
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._reconnect_loop,
                                            name='store-reconnect', daemon=True)
            self._thread.start()

    def _reconnect_loop(self) -> None:
        while not self._stop.wait(self.retry_interval):
            with self._lock:
                if self._stop.is_set():
                    break
                self.state = STATE_RECONNECTING
            try:
                # Drop pooled connections that died with the server
                self.engine.dispose()
                self._check()
            except Exception as exc:
                if is_connectivity_error(exc):
                    logger.warning("Store still unavailable, retrying in %s seconds: %s",
                                   self.retry_interval, exc)
                    with self._lock:
                        if not self._stop.is_set():
                            self.state = STATE_DEGRADED
                    continue
                logger.critical("Store connection failed permanently: %s", exc)
                with self._lock:
                    self.fatal_error = exc
                    self.state = STATE_CLOSED
                    self._thread = None
                return
            with self._lock:
                # close() may have run while the attempt was in flight
                if self._stop.is_set():
                    break
                self.state = STATE_OPEN
                self._thread = None
            logger.info("Reconnected to the store")
            return
        with self._lock:
            if self._thread is threading.current_thread():
                self._thread = None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @contextmanager
    def session(self):
        """Yield a SQLAlchemy session; rolls back on error, always closes."""
        with self._lock:
            if self.fatal_error is not None:
                raise StoreUnavailableError(
                    "Store connection failed permanently") from self.fatal_error
            if self.state != STATE_OPEN:
                raise StoreUnavailableError(f"Store is {self.state}")
            db = self.SessionLocal()
        try:
            yield db
        except Exception as exc:
            if is_connection_lost(exc):
                self.mark_lost(exc)
            db.rollback()
            raise
        finally:
            db.close()


def init_db(store: StoreConnection) -> bool:
    """Create tables on an open store; returns False when that fails."""
    try:
        store.create_tables()
        return True
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False
