"""Event candidate normalization.

Runs before an event is inserted and rewrites the candidate into its
canonical form:

1. ``slug`` derived from ``title`` and made unique against the store.
2. ``date`` checked to be a real ``YYYY-MM-DD`` calendar date.
3. ``time`` checked as 24-hour time and zero-padded to ``HH:MM``.

Each step only runs when its governing field appears in the ``changed``
set handed in by the caller, so an update that leaves ``title`` alone
keeps its slug.
"""

import logging
import re
import secrets
from collections.abc import Awaitable, Callable, Collection, MutableMapping
from datetime import date
from typing import Any

from devevent.errors import FieldValidationError

logger = logging.getLogger(__name__)

SLUG_FALLBACK = "event"
DATE_MESSAGE = "Invalid date format - expected YYYY-MM-DD"
TIME_MESSAGE = "Time must be in HH:MM format"

# re.ASCII keeps \d and \w to ASCII; stored dates, times and slugs are ASCII only.
DATE_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$", re.ASCII)
# Minutes may arrive unpadded ("9:5"); both parts are padded on output.
TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]?\d)$", re.ASCII)

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_HYPHENS = re.compile(r"-+")

SlugExists = Callable[[str], Awaitable[bool]]


def slugify(title: str) -> str:
    """Return the URL-safe base slug for ``title``, or ``event`` if nothing survives."""
    s = (title or "").lower().strip()
    s = _NON_SLUG_CHARS.sub("", s)
    s = _WHITESPACE.sub("-", s)
    s = _HYPHENS.sub("-", s)
    s = s.strip("-")
    return s or SLUG_FALLBACK


def normalize_date(value: Any) -> str:
    if not isinstance(value, str):
        raise FieldValidationError.for_field("date", DATE_MESSAGE)
    match = DATE_RE.fullmatch(value)
    if not match:
        raise FieldValidationError.for_field("date", DATE_MESSAGE)
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        raise FieldValidationError.for_field("date", DATE_MESSAGE) from None
    return match.group(0)


def normalize_time(value: Any) -> str:
    if not isinstance(value, str):
        raise FieldValidationError.for_field("time", TIME_MESSAGE)
    match = TIME_RE.fullmatch(value)
    if not match:
        raise FieldValidationError.for_field("time", TIME_MESSAGE)
    hours, minutes = match.groups()
    return f"{hours.zfill(2)}:{minutes.zfill(2)}"


class EventNormalizer:
    """Derives the slug and canonical date/time of an event candidate.

    Args:
        slug_exists: Async lookup returning True if a stored event already
            uses the given slug.
        max_slug_attempts: Suffixed candidates (``base-1`` .. ``base-N``)
            tried before falling back to a random suffix.
    """

    def __init__(self, slug_exists: SlugExists, max_slug_attempts: int = 100) -> None:
        self._slug_exists = slug_exists
        self._max_slug_attempts = max_slug_attempts

    async def normalize(
        self,
        candidate: MutableMapping[str, Any],
        changed: Collection[str],
    ) -> MutableMapping[str, Any]:
        """Mutate ``candidate`` in place and return it.

        Raises:
            FieldValidationError: If ``date`` or ``time`` is malformed.
        """
        if "title" in changed or not candidate.get("slug"):
            candidate["slug"] = await self.resolve_slug(candidate.get("title") or "")

        if "date" in changed:
            candidate["date"] = normalize_date(candidate.get("date"))

        if "time" in changed:
            candidate["time"] = normalize_time(candidate.get("time"))

        return candidate

    async def resolve_slug(self, title: str) -> str:
        base = slugify(title)
        candidate = base
        counter = 0
        while await self._slug_exists(candidate):
            counter += 1
            if counter > self._max_slug_attempts:
                fallback = f"{base}-{secrets.token_hex(3)}"
                logger.warning(
                    "Slug %r still taken after %d attempts, using %r",
                    base,
                    self._max_slug_attempts,
                    fallback,
                )
                return fallback
            candidate = f"{base}-{counter}"
        return candidate
