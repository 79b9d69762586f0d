from django.urls import path

from emr_core.progress_notes.api.views import (
    ProgressNoteCollectionView,
    ProgressNoteDetailView,
    ProgressNoteFinalizeView,
)

urlpatterns = [
    path("", ProgressNoteCollectionView.as_view(), name="progress-notes"),
    path("finalize/", ProgressNoteFinalizeView.as_view(), name="progress-notes-finalize"),
    path("<uuid:note_id>/", ProgressNoteDetailView.as_view(), name="progress-notes-detail"),
]
