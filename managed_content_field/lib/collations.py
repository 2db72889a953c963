"""
Per-vendor collations for text fields.

Django's ``db_collation`` takes a single value, which can't serve both SQLite
and MySQL. ``MultiCollationMixin`` takes one collation per vendor instead.
"""
from django.db import models


class MultiCollationMixin:
    """
    Mix into CharField or TextField subclasses to add ``db_collations``.

    ``db_collations`` maps a vendor name to its collation, e.g.
    ``{"sqlite": "BINARY", "mysql": "utf8mb4_bin"}``. Vendors that aren't
    listed use their default collation. ``db_collation`` is not accepted.
    """

    def __init__(self, *args, db_collations=None, db_collation=None, **kwargs):  # pylint: disable=unused-argument
        super().__init__(*args, **kwargs)
        self.db_collations = dict(db_collations or {})

    def db_parameters(self, connection):
        params = models.Field.db_parameters(self, connection)
        collation = self.db_collations.get(connection.vendor)
        if collation:
            params["collation"] = collation
        return params

    def deconstruct(self):
        name, path, args, kwargs = super().deconstruct()
        if self.db_collations:
            kwargs["db_collations"] = self.db_collations
        return name, path, args, kwargs
