from django.urls import path

from emr_core.encounters.api.views import EncounterCollectionView, EncounterDetailView

urlpatterns = [
    path("", EncounterCollectionView.as_view(), name="encounters"),
    path("<uuid:encounter_id>/", EncounterDetailView.as_view(), name="encounters-detail"),
]
