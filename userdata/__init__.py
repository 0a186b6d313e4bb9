"""Helpers that shape, validate, sanitize and summarize user records."""

from .core.records import (
    CloneError,
    deep_clone_object,
    format_user_data,
    merge_user_defaults,
    process_external_data,
    project,
)
from .core.validation import is_valid_username, sanitize_input, validate_request
from .services.generator import generate_random_user
from .services.stats import get_user_stats

__all__ = [
    "CloneError",
    "deep_clone_object",
    "format_user_data",
    "generate_random_user",
    "get_user_stats",
    "is_valid_username",
    "merge_user_defaults",
    "process_external_data",
    "project",
    "sanitize_input",
    "validate_request",
]
