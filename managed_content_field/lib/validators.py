"""
Useful validation methods
"""
from datetime import datetime, timezone

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _


def validate_utc_datetime(dt: datetime):
    if dt.tzinfo != timezone.utc:
        raise ValidationError(
            _("The timezone for %(datetime)s is not UTC."),
            params={"datetime": dt},
        )


def validate_langcode(value: str):
    """
    Language codes are short lowercase tags like "en", "fr" or "pt-br".
    """
    if not value or len(value) > 12 or value != value.lower() or " " in value:
        raise ValidationError(
            _("%(value)s is not a valid language code."),
            params={"value": value},
        )
