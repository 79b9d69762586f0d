# emr_core/progress_notes/apps.py
from django.apps import AppConfig


class ProgressNotesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "emr_core.progress_notes"
    label = "progress_notes"

    def ready(self):
        # registers note.finalized subscribers on the in-process bus
        from emr_core.progress_notes import subscribers  # noqa: F401
