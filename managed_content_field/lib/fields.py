"""
Field helpers shared by the managed content models.

Rows use a BigInt primary key plus a UUID column for identifiers that leave
this database. Text columns get explicit collations per database vendor, so
that bundle keys are unique in a case-sensitive way and titles sort the same
on SQLite (tests) and MySQL (production).
"""
from __future__ import annotations

import uuid

from django.db import models

from .collations import MultiCollationMixin
from .validators import validate_utc_datetime

CASE_INSENSITIVE_COLLATIONS = {
    "sqlite": "NOCASE",
    "mysql": "utf8mb4_unicode_ci",
}
CASE_SENSITIVE_COLLATIONS = {
    "sqlite": "BINARY",
    "mysql": "utf8mb4_bin",
}


class MultiCollationCharField(MultiCollationMixin, models.CharField):
    """
    CharField with one collation per database vendor.
    """


def case_insensitive_char_field(**kwargs) -> MultiCollationCharField:
    """
    Text for people: labels and titles. Sorts without regard to case.

    Any ``CharField`` argument may be passed through.
    """
    return MultiCollationCharField(**{
        "null": False,
        "db_collations": CASE_INSENSITIVE_COLLATIONS,
        **kwargs,
    })


def key_field(**kwargs) -> MultiCollationCharField:
    """
    Machine identifiers such as bundle keys ("article").

    "Article" and "article" are distinct keys.
    """
    return MultiCollationCharField(**{
        "max_length": 255,
        "null": False,
        "blank": False,
        "db_collations": CASE_SENSITIVE_COLLATIONS,
        **kwargs,
    })


def immutable_uuid_field() -> models.UUIDField:
    """
    Random UUID for referring to a row from outside this database.
    """
    return models.UUIDField(
        default=uuid.uuid4,
        blank=False,
        null=False,
        editable=False,
        unique=True,
        verbose_name="UUID",
    )


def manual_date_time_field() -> models.DateTimeField:
    """
    UTC DateTimeField that is never filled in automatically.

    One host save writes several revisions (one per managed item); passing the
    time in lets every row of that submission carry the same timestamp.
    """
    return models.DateTimeField(
        auto_now=False,
        auto_now_add=False,
        null=False,
        validators=[validate_utc_datetime],
    )
