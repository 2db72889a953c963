"""
entities Django application initialization.
"""

from django.apps import AppConfig


class EntitiesConfig(AppConfig):
    """
    Configuration for the managed entities Django application.
    """

    name = "managed_content_field.apps.entities"
    verbose_name = "Managed Content > Entities"
    default_auto_field = "django.db.models.BigAutoField"
    label = "mcf_entities"
