"""Tests for row serialization helpers used by backups."""
from __future__ import annotations

from datetime import date, datetime

from kursus.db.crud import dict_to_row_kwargs, to_camel
from kursus.db.models import BlogPostORM, StudentORM


def test_to_camel():
    assert to_camel("id") == "id"
    assert to_camel("date_of_birth") == "dateOfBirth"
    assert to_camel("created_at") == "createdAt"


def test_dict_to_row_kwargs_parses_dates_and_drops_unknown_keys():
    kwargs = dict_to_row_kwargs(
        StudentORM,
        {
            "id": "s1",
            "name": "Ahmad Rizki",
            "dateOfBirth": "1995-03-15",
            "createdAt": "2024-01-01T08:30:00Z",
            "legacyField": "ignored",
        },
    )

    assert kwargs["id"] == "s1"
    assert kwargs["date_of_birth"] == date(1995, 3, 15)
    assert kwargs["created_at"] == datetime(2024, 1, 1, 8, 30)
    assert "legacyField" not in kwargs
    assert "legacy_field" not in kwargs


def test_dict_to_row_kwargs_defaults_missing_timestamps():
    kwargs = dict_to_row_kwargs(BlogPostORM, {"id": "b1", "title": "Tips", "slug": "tips", "content": "..."})

    assert isinstance(kwargs["created_at"], datetime)
    assert isinstance(kwargs["updated_at"], datetime)
    assert "published_at" not in kwargs


def test_dict_to_row_kwargs_converts_offsets_to_utc():
    kwargs = dict_to_row_kwargs(BlogPostORM, {"id": "b1", "publishedAt": "2024-01-02T10:00:00+07:00"})

    assert kwargs["published_at"] == datetime(2024, 1, 2, 3, 0)
    assert kwargs["published_at"].tzinfo is None


def test_dict_to_row_kwargs_keeps_naive_timestamps():
    kwargs = dict_to_row_kwargs(BlogPostORM, {"id": "b1", "publishedAt": "2024-01-02T10:00:00"})

    assert kwargs["published_at"] == datetime(2024, 1, 2, 10, 0)
