"""
Tests of ContentEntity, the in-memory entity handle
"""
from __future__ import annotations

import ddt  # type: ignore[import]
import pytest

from managed_content_field.apps.entities.data import (
    TITLE_FIELD,
    BundleDefinition,
    ContentEntity,
    FieldSpec,
    FieldType,
    coerce_field_value,
)
from managed_content_field.apps.entities.exceptions import UnsupportedFieldAssignment
from managed_content_field.lib.test_utils import TestCase

PAGE = BundleDefinition(
    key="page",
    label="Page",
    translatable=True,
    fields=(
        TITLE_FIELD,
        FieldSpec("body", FieldType.TEXT, "Body", translatable=True),
        FieldSpec("weight", FieldType.INTEGER, "Weight"),
        FieldSpec("parts", FieldType.NESTED, "Parts"),
    ),
)


@ddt.ddt
class CoerceFieldValueTestCase(TestCase):
    """
    Field values are converted to their storage type, or rejected
    """
    @ddt.data(
        (FieldType.STRING, 5, "5"),
        (FieldType.INTEGER, "42", 42),
        (FieldType.INTEGER, "-7", -7),
        (FieldType.BOOLEAN, "1", True),
        (FieldType.BOOLEAN, 0, False),
        (FieldType.NESTED, None, []),
    )
    @ddt.unpack
    def test_accepted(self, field_type, value, expected) -> None:
        assert coerce_field_value(FieldSpec("f", field_type), value) == expected

    @ddt.data(
        (FieldType.STRING, ["a"]),
        (FieldType.INTEGER, "--5"),
        (FieldType.INTEGER, True),
        (FieldType.BOOLEAN, "yes"),
        (FieldType.NESTED, [{"target_id": 1}]),
    )
    @ddt.unpack
    def test_rejected(self, field_type, value) -> None:
        with pytest.raises(UnsupportedFieldAssignment):
            coerce_field_value(FieldSpec("f", field_type), value)


class ContentEntityTestCase(TestCase):
    """
    Field access and translations of an unsaved entity
    """
    def test_unknown_field(self) -> None:
        entity = ContentEntity.create(PAGE, langcode="en")
        assert entity.get("missing", "default") == "default"
        with pytest.raises(UnsupportedFieldAssignment):
            entity.set("missing", "value")

    def test_label(self) -> None:
        entity = ContentEntity.create(PAGE, langcode="en")
        assert entity.label == "Page"
        entity.set("title", "About us")
        assert entity.label == "About us"

    def test_translations_share_state(self) -> None:
        entity = ContentEntity.create(PAGE, {"title": "Hello", "body": "Text", "weight": 1}, langcode="en")
        french = entity.add_translation("fr", {"title": "Bonjour"})

        assert french.language == "fr"
        assert not french.is_default_translation
        assert french.get("title") == "Bonjour"
        assert entity.get("title") == "Hello"

        # Untranslatable fields are shared between translations.
        french.set("weight", 9)
        assert entity.get("weight") == 9

        assert entity.get_translation("fr").get("body") == "Text"
        assert french.get_untranslated().language == "en"
        assert french.same_as(entity)

        with pytest.raises(ValueError):
            entity.add_translation("fr")
        with pytest.raises(KeyError):
            entity.get_translation("de")

    def test_set_langcode(self) -> None:
        entity = ContentEntity.create(PAGE, {"title": "Hallo"}, langcode="en")
        entity.set_langcode("de")
        assert entity.language == "de"
        assert entity.default_langcode == "de"
        assert entity.get("title") == "Hallo"
        assert entity.translation_languages == ["de"]

    def test_duplicate(self) -> None:
        entity = ContentEntity.create(PAGE, {"title": "Hello"}, langcode="en")
        entity.add_translation("fr")
        duplicate = entity.get_translation("fr").create_duplicate()

        assert duplicate.is_new
        assert duplicate.language == "fr"
        assert not duplicate.same_as(entity)
        assert duplicate.to_array() == entity.to_array()

        duplicate.set("title", "Copy")
        assert duplicate.to_array() != entity.to_array()
