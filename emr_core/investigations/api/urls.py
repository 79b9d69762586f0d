from django.urls import path

from emr_core.investigations.api.views import (
    InvestigationOrderCollectionView,
    InvestigationResultCollectionView,
    InvestigationResultReviewView,
)

urlpatterns = [
    path("orders/", InvestigationOrderCollectionView.as_view(), name="investigation-orders"),
    path("results/", InvestigationResultCollectionView.as_view(), name="investigation-results"),
    path("results/<uuid:result_id>/review/", InvestigationResultReviewView.as_view(), name="investigation-result-review"),
]
