from django.urls import path

from emr_core.audit.api.views import AuditEventListView

urlpatterns = [
    path("events/", AuditEventListView.as_view(), name="audit-events"),
]
