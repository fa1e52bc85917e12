"""Tests for event slug, date and time normalization."""

import pytest

from devevent.errors import FieldValidationError
from devevent.normalize import (
    EventNormalizer,
    normalize_date,
    normalize_time,
    slugify,
)


def _exists_in(taken: set[str]):
    async def slug_exists(slug: str) -> bool:
        return slug in taken

    return slug_exists


class TestSlugify:
    def test_lowercases_and_hyphenates(self):
        assert slugify("Cloud Next 2026!") == "cloud-next-2026"

    def test_collapses_whitespace_and_hyphens(self):
        assert slugify("  React   --  Summit  ") == "react-summit"

    def test_strips_edge_hyphens(self):
        assert slugify("-- PyCon --") == "pycon"

    def test_keeps_underscores(self):
        assert slugify("dev_fest 2025") == "dev_fest-2025"

    def test_drops_non_ascii_letters(self):
        slug = slugify("Café Über 東京")
        assert slug == "caf-ber"
        assert slug.isascii()

    def test_non_ascii_only_title_falls_back(self):
        assert slugify("東京") == "event"

    @pytest.mark.parametrize("title", ["", "   ", "!!!", "@#$%"])
    def test_empty_base_falls_back(self, title):
        assert slugify(title) == "event"


class TestResolveSlug:
    @pytest.mark.asyncio
    async def test_first_gets_bare_base(self):
        normalizer = EventNormalizer(_exists_in(set()))
        assert await normalizer.resolve_slug("Cloud Next 2026!") == "cloud-next-2026"

    @pytest.mark.asyncio
    async def test_collisions_count_from_one(self):
        taken = {"cloud-next-2026"}
        normalizer = EventNormalizer(_exists_in(taken))
        assert await normalizer.resolve_slug("Cloud Next 2026") == "cloud-next-2026-1"

        taken.add("cloud-next-2026-1")
        assert await normalizer.resolve_slug("Cloud Next 2026") == "cloud-next-2026-2"

    @pytest.mark.asyncio
    async def test_empty_base_collision(self):
        normalizer = EventNormalizer(_exists_in({"event"}))
        assert await normalizer.resolve_slug("???") == "event-1"

    @pytest.mark.asyncio
    async def test_bounded_attempts_fall_back_to_random_suffix(self):
        async def always_taken(_slug: str) -> bool:
            return True

        normalizer = EventNormalizer(always_taken, max_slug_attempts=3)
        slug = await normalizer.resolve_slug("Busy Title")

        assert slug.startswith("busy-title-")
        suffix = slug.removeprefix("busy-title-")
        assert len(suffix) == 6
        int(suffix, 16)


class TestNormalizeDate:
    @pytest.mark.parametrize("value", ["2026-03-10", "2024-02-29", "1999-12-31", "2023-01-01"])
    def test_valid_dates_are_idempotent(self, value):
        once = normalize_date(value)
        assert once == value
        assert normalize_date(once) == once

    @pytest.mark.parametrize(
        "value",
        ["2023-02-30", "2023-04-31", "2023-02-29", "2023-06-31", "2023-11-31"],
    )
    def test_impossible_days_rejected(self, value):
        with pytest.raises(FieldValidationError) as exc_info:
            normalize_date(value)
        assert exc_info.value.fields == {"date": "Invalid date format - expected YYYY-MM-DD"}

    @pytest.mark.parametrize(
        "value",
        ["2023-13-01", "2023-00-10", "2023-1-5", "10/03/2026", "2026-03-10T00:00", "", None, 20260310],
    )
    def test_malformed_rejected(self, value):
        with pytest.raises(FieldValidationError):
            normalize_date(value)

    @pytest.mark.parametrize("value", ["２０２６-03-10", "2026-０３-10", "٢٠٢٦-03-10"])
    def test_non_ascii_digits_rejected(self, value):
        with pytest.raises(FieldValidationError):
            normalize_date(value)


class TestNormalizeTime:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("9:05", "09:05"),
            ("09:05", "09:05"),
            ("0:00", "00:00"),
            ("23:59", "23:59"),
            ("9:5", "09:05"),
        ],
    )
    def test_pads_to_hh_mm(self, value, expected):
        assert normalize_time(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "7", "07:5a", "-1:00", "", None])
    def test_invalid_rejected(self, value):
        with pytest.raises(FieldValidationError) as exc_info:
            normalize_time(value)
        assert exc_info.value.fields == {"time": "Time must be in HH:MM format"}

    @pytest.mark.parametrize("value", ["٩:٥", "０９:３０", "9:٣٠"])
    def test_non_ascii_digits_rejected(self, value):
        with pytest.raises(FieldValidationError):
            normalize_time(value)


class TestEventNormalizer:
    @pytest.mark.asyncio
    async def test_normalizes_all_changed_fields(self):
        normalizer = EventNormalizer(_exists_in(set()))
        candidate = {"title": "Cloud Next 2026!", "date": "2026-03-10", "time": "9:5"}

        result = await normalizer.normalize(candidate, changed={"title", "date", "time"})

        assert result is candidate
        assert candidate == {
            "title": "Cloud Next 2026!",
            "slug": "cloud-next-2026",
            "date": "2026-03-10",
            "time": "09:05",
        }

    @pytest.mark.asyncio
    async def test_unchanged_fields_are_left_alone(self):
        normalizer = EventNormalizer(_exists_in(set()))
        candidate = {"title": "New Title", "slug": "old-title", "date": "bogus", "time": "9:05"}

        await normalizer.normalize(candidate, changed={"time"})

        assert candidate["slug"] == "old-title"
        assert candidate["date"] == "bogus"
        assert candidate["time"] == "09:05"

    @pytest.mark.asyncio
    async def test_missing_slug_is_derived_even_if_title_unchanged(self):
        normalizer = EventNormalizer(_exists_in(set()))
        candidate = {"title": "Meetup"}

        await normalizer.normalize(candidate, changed=set())

        assert candidate["slug"] == "meetup"

    @pytest.mark.asyncio
    async def test_slug_runs_before_date_failure(self):
        checked: list[str] = []

        async def slug_exists(slug: str) -> bool:
            checked.append(slug)
            return False

        normalizer = EventNormalizer(slug_exists)
        candidate = {"title": "Meetup", "date": "2023-02-30", "time": "25:00"}

        with pytest.raises(FieldValidationError) as exc_info:
            await normalizer.normalize(candidate, changed={"title", "date", "time"})

        assert checked == ["meetup"]
        assert "date" in exc_info.value.fields
        assert candidate["time"] == "25:00"
