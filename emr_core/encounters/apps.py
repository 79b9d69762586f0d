# emr_core/encounters/apps.py
from django.apps import AppConfig


class EncountersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.encounters"
    label = "encounters"
