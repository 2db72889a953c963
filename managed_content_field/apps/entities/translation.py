"""
Translation settings and metadata for managed entities.
"""
from __future__ import annotations

from dataclasses import dataclass

from . import api
from .data import ContentEntity


@dataclass(frozen=True)
class BundleTranslationSettings:
    translatable: bool = False
    untranslatable_fields_hide: bool = False


class TranslationMetadata:
    """
    Translation bookkeeping of one entity translation.
    """

    def __init__(self, translation: ContentEntity):
        self.translation = translation

    def get_source(self) -> str | None:
        return self.translation.translation_source()

    def set_source(self, langcode: str | None) -> None:
        self.translation.set_translation_source(langcode)


class ContentTranslationManager:
    """
    Answers translation questions about bundles and entities.
    """

    def is_translatable(self, bundle_key: str) -> bool:
        return api.get_bundle_definition(bundle_key).translatable

    def get_bundle_translation_settings(self, bundle_key: str) -> BundleTranslationSettings:
        bundle = api.get_bundle_definition(bundle_key)
        return BundleTranslationSettings(
            translatable=bundle.translatable,
            untranslatable_fields_hide=bundle.untranslatable_fields_hide,
        )

    def get_translation_metadata(self, translation: ContentEntity) -> TranslationMetadata:
        return TranslationMetadata(translation)
