import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional

from .dates import to_iso_instant, utcnow


logger = logging.getLogger(__name__)

PUBLIC_USER_FIELDS = ('id', 'username', 'email', 'createdAt', 'updatedAt')
EXTERNAL_USER_FIELDS = ('id', 'name', 'email')
USER_OVERRIDE_FIELDS = ('role', 'active')
PREFERENCE_FIELDS = ('theme', 'notifications', 'language')
METADATA_FIELDS = ('lastLogin', 'loginCount', 'createdBy')

DEFAULT_PREFERENCES = MappingProxyType({
    'theme': 'light',
    'notifications': True,
    'language': 'en',
})
DEFAULT_METADATA = MappingProxyType({
    'lastLogin': None,
    'loginCount': 0,
    'createdBy': 'system',
})
DEFAULT_USER = MappingProxyType({
    'role': 'user',
    'active': True,
    'preferences': DEFAULT_PREFERENCES,
    'metadata': DEFAULT_METADATA,
})


class CloneError(ValueError):
    """Raised when a value cannot be deep-cloned."""


def project(record: Any, allowed_keys: Iterable[str]) -> Dict[str, Any]:
    """Return a new dict holding only ``allowed_keys`` present in ``record``.

    Anything that is not a mapping projects to an empty dict.
    """
    if not isinstance(record, Mapping):
        return {}
    return {key: record[key] for key in allowed_keys if key in record}


def format_user_data(user: Any) -> Dict[str, Any]:
    return project(user, PUBLIC_USER_FIELDS)


def _section(user_data: Any, name: str) -> Any:
    if isinstance(user_data, Mapping):
        return user_data.get(name)
    return None


def merge_user_defaults(user_data: Any) -> Dict[str, Any]:
    """Overlay the whitelisted fields of ``user_data`` onto the defaults.

    Only ``role``/``active`` and the known preference and metadata keys are
    read, so injected keys such as ``__proto__`` never reach the result.
    """
    merged = {key: value for key, value in DEFAULT_USER.items() if key not in ('preferences', 'metadata')}
    merged.update(project(user_data, USER_OVERRIDE_FIELDS))
    merged['preferences'] = {
        **DEFAULT_PREFERENCES,
        **project(_section(user_data, 'preferences'), PREFERENCE_FIELDS),
    }
    merged['metadata'] = {
        **DEFAULT_METADATA,
        **project(_section(user_data, 'metadata'), METADATA_FIELDS),
    }
    return merged


def process_external_data(data: Any, *, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    if not isinstance(data, (list, tuple)):
        return []

    processed_at = to_iso_instant(now or utcnow())
    results: List[Dict[str, Any]] = []
    for item in data:
        record = project(item, EXTERNAL_USER_FIELDS)
        record['processedAt'] = processed_at
        record['metadata'] = project(_section(item, 'metadata'), METADATA_FIELDS)
        results.append(record)
    return results


def _clone_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if key is None:
        return 'null'
    if isinstance(key, bool):
        return 'true' if key else 'false'
    if isinstance(key, (int, float)):
        return str(key)
    raise CloneError(f"Unsupported mapping key type: {type(key).__name__}")


def _clone(value: Any, active: set) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, (Mapping, list, tuple)):
        marker = id(value)
        if marker in active:
            raise CloneError("Circular reference detected")
        active.add(marker)
        try:
            if isinstance(value, Mapping):
                return {
                    _clone_key(key): _clone(item, active)
                    for key, item in value.items()
                    if not callable(item)
                }
            return [None if callable(item) else _clone(item, active) for item in value]
        finally:
            active.discard(marker)

    raise CloneError(f"Unsupported value type: {type(value).__name__}")


def deep_clone_object(obj: Any) -> Any:
    """Deep-copy a JSON-shaped value.

    Follows JSON semantics: callables are dropped from mappings and become
    None in sequences, non-finite floats become None, tuples become lists and
    dates become ISO strings. Cycles and unsupported types raise CloneError.
    """
    if callable(obj):
        return None
    try:
        return _clone(obj, set())
    except CloneError as e:
        logger.debug(f"Deep clone failed: {e}")
        raise
