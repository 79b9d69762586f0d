# emr_core/api/urls.py
from __future__ import annotations

from django.urls import include, path

from emr_core.iam.api.auth import LoginView, LogoutView, RefreshView
from emr_core.iam.api.me import MeView

urlpatterns = [
    # 🔐 Auth + /me
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    # Clinical workflow
    path("encounters/", include("emr_core.encounters.api.urls")),
    path("progress-notes/", include("emr_core.progress_notes.api.urls")),
    path("investigations/", include("emr_core.investigations.api.urls")),

    # Provenance
    path("audit/", include("emr_core.audit.api.urls")),
]
