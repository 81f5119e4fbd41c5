"""Backup tag vocabulary and tag value resolution."""

from __future__ import annotations

import re
from typing import Optional, TypeVar, Union

from ..models.tagged_resource import TaggedResource

BACKUP_ENABLED_TAG = "backup.enabled"
BACKUP_FREQUENCY_HOURS_TAG = "backup.frequency_hours"
BACKUP_RETENTION_HOURS_TAG = "backup.retention_hours"
BACKUP_LAST_TAG = "backup.last"
BACKUP_PURGE_TAG = "backup.purge"
NAME_TAG = "Name"

BACKUP_ENABLED_VALUE = "true"

BACKUP_FREQUENCY_HOURS_DEFAULT = 24
BACKUP_RETENTION_HOURS_DEFAULT = 7 * 24
BACKUP_LAST_DEFAULT = 0

SECONDS_PER_HOUR = 60 * 60

_INTEGER_PATTERN = re.compile(r"-?[0-9]+")

T = TypeVar("T")


def get_tag_value(resource: TaggedResource, tag_name: str, default: Optional[str] = None) -> Optional[str]:
    """Return the tag's string value, or the default when the tag is absent."""
    return resource.tags.get(tag_name, default)


def parse_int_tag(value: Optional[str], default: T) -> Union[int, T]:
    """Convert a tag value to an integer.

    Never raises: a missing, empty or non-numeric value yields ``default``.
    Only plain ASCII decimal integers are accepted, so forms such as
    ``"1_0"`` or ``"+5"`` also yield ``default``.

    Args:
        value: Raw tag value (may be None)
        default: Value returned when ``value`` is not a valid integer

    Returns:
        Parsed integer, or ``default``
    """
    if not isinstance(value, str):
        return default

    stripped = value.strip()
    if not _INTEGER_PATTERN.fullmatch(stripped):
        return default
    return int(stripped)
