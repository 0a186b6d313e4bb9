import logging
import re
from collections.abc import Mapping
from typing import Any, Iterable

from fastapi import HTTPException


logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_]+$', re.ASCII)
STRIPPED_CHARACTERS = re.compile(r'[<>]')


def _to_string(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (list, tuple)):
        return ','.join(_to_string(item) for item in value)
    return str(value)


def _missing_fields(body: Mapping, required_fields: Iterable[str]) -> list[str]:
    return [
        field for field in required_fields
        if not isinstance(field, str) or field not in body or not _to_string(body[field]).strip()
    ]


def validate_request(body: Any, required_fields: Iterable[str]) -> bool:
    if not isinstance(body, Mapping):
        return False
    return not _missing_fields(body, required_fields or ())


def sanitize_input(value: Any) -> str:
    """Trim whitespace and drop every ``<`` and ``>``.

    This is not an HTML sanitizer; it only removes angle brackets.
    """
    if not isinstance(value, str):
        return ''
    return STRIPPED_CHARACTERS.sub('', value.strip())


def is_valid_username(username: Any) -> bool:
    if not isinstance(username, str):
        return False
    return (
        USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH
        and USERNAME_PATTERN.fullmatch(username) is not None
    )


def ensure_request(body: Any, required_fields: Iterable[str]) -> None:
    required_fields = list(required_fields or ())
    if not isinstance(body, Mapping):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")

    missing = _missing_fields(body, required_fields)
    if missing:
        logger.info(f"Request rejected, missing fields: {missing}")
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(map(str, missing))}")


def ensure_username(username: Any) -> None:
    if not is_valid_username(username):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid username. Use {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} letters, digits or underscores",
        )
