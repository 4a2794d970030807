"""Validation rules for game and category payloads.

Both the API service and the storefront client import these functions, so a
payload the client accepts is exactly a payload the server accepts.
"""
import datetime
import math
from typing import Any, Dict, Optional

GAME_REQUIRED_FIELDS = ('title', 'description', 'genre', 'platform', 'price')
GAME_OPTIONAL_FIELDS = ('release_date', 'rating', 'image_url', 'category_id')

MIN_RATING = 0.0
MAX_RATING = 10.0
DEFAULT_RATING = 0
# Largest value a DECIMAL(10, 2) price column holds
MAX_PRICE = 99999999.99


class ValidationError(ValueError):
    """Raised when a payload breaks the validation contract."""


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _as_object(payload: Any) -> Dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return payload


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f'{name} must be a number')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be a number')
    if not math.isfinite(number):
        raise ValidationError(f'{name} must be a finite number')
    return number


def _optional_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value).strip()


def _release_date(value: Any) -> Optional[datetime.date]:
    if _is_missing(value):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    text = str(value).strip()
    try:
        if 'T' in text:
            # Full timestamps are accepted; only the date part is stored
            if text.endswith('Z'):
                text = text[:-1]
            return datetime.datetime.fromisoformat(text).date()
        return datetime.date.fromisoformat(text)
    except ValueError:
        raise ValidationError('release_date must be an ISO date (YYYY-MM-DD)')


def _category_id(value: Any) -> Optional[int]:
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        raise ValidationError('category_id must be an integer')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError('category_id must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError('category_id must be an integer')


def validate_game(payload: Optional[Dict]) -> Dict:
    """Check a game payload and return the normalised field set.

    Every required field must be present and non-blank (``price`` may be
    ``0``); all missing fields are reported in one message.  ``price`` must
    fit the price column and ``rating`` defaults to 0 and must lie in 0-10.

    Raises:
        ValidationError: on a non-object payload or any missing or
            malformed field.
    """
    payload = _as_object(payload)
    missing = [f for f in GAME_REQUIRED_FIELDS if _is_missing(payload.get(f))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    price = _number('price', payload['price'])
    if price < 0:
        raise ValidationError('price must not be negative')
    if price > MAX_PRICE:
        raise ValidationError(f'price must not exceed {MAX_PRICE:.2f}')

    rating = payload.get('rating')
    rating = DEFAULT_RATING if _is_missing(rating) else _number('rating', rating)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f'rating must be between {MIN_RATING:g} and {MAX_RATING:g}')

    return {
        'title': str(payload['title']).strip(),
        'description': str(payload['description']).strip(),
        'genre': str(payload['genre']).strip(),
        'platform': str(payload['platform']).strip(),
        'price': price,
        'release_date': _release_date(payload.get('release_date')),
        'rating': rating,
        'image_url': _optional_text(payload.get('image_url')),
        'category_id': _category_id(payload.get('category_id')),
    }


def validate_category(payload: Optional[Dict]) -> Dict:
    """Check a category payload; ``name`` is required."""
    payload = _as_object(payload)
    if _is_missing(payload.get('name')):
        raise ValidationError('Category name is required')
    return {
        'name': str(payload['name']).strip(),
        'description': _optional_text(payload.get('description')),
    }


def to_wire(fields: Dict) -> Dict:
    """Return *fields* with dates rendered as ISO strings for JSON bodies."""
    out = dict(fields)
    if isinstance(out.get('release_date'), datetime.date):
        out['release_date'] = out['release_date'].isoformat()
    return out
