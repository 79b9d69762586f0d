# emr_core/iam/api/auth.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer

from emr_core.iam.api.schema_serializers import DetailResponseSerializer, LoginRequestSerializer


@dataclass(frozen=True)
class CookiePolicy:
    access_name: str
    refresh_name: str
    access_max_age: int
    refresh_max_age: int
    secure: bool
    samesite: str

    @classmethod
    def from_settings(cls) -> "CookiePolicy":
        cfg = getattr(settings, "SIMPLE_JWT", {}) or {}
        return cls(
            access_name=cfg.get("AUTH_COOKIE", "emr_access"),
            refresh_name=cfg.get("AUTH_COOKIE_REFRESH", "emr_refresh"),
            access_max_age=_seconds(cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=10))),
            refresh_max_age=_seconds(cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=14))),
            secure=bool(cfg.get("AUTH_COOKIE_SECURE", False)),
            samesite=cfg.get("AUTH_COOKIE_SAMESITE", "Lax"),
        )

    def set(self, response: Response, *, access: str, refresh: str | None = None) -> None:
        response.set_cookie(
            self.access_name, access, max_age=self.access_max_age,
            httponly=True, secure=self.secure, samesite=self.samesite, path="/",
        )
        if refresh:
            response.set_cookie(
                self.refresh_name, refresh, max_age=self.refresh_max_age,
                httponly=True, secure=self.secure, samesite=self.samesite, path="/",
            )

    def clear(self, response: Response) -> None:
        response.delete_cookie(self.access_name, path="/")
        response.delete_cookie(self.refresh_name, path="/")


def _seconds(value) -> int:
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    return int(value)


class _PublicAuthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        # keeps credential failures at 401 without running authenticators
        return 'Bearer realm="api"'


class LoginView(_PublicAuthView):
    @extend_schema(request=LoginRequestSerializer, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        serializer = TokenObtainPairSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        res = Response({"detail": "login ok"}, status=status.HTTP_200_OK)
        CookiePolicy.from_settings().set(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        return res


class RefreshView(_PublicAuthView):
    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        policy = CookiePolicy.from_settings()
        refresh = request.COOKIES.get(policy.refresh_name)
        if not refresh:
            raise NotAuthenticated("Refresh cookie missing.")

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        serializer.is_valid(raise_exception=True)

        res = Response({"detail": "refresh ok"}, status=status.HTTP_200_OK)
        # ROTATE_REFRESH_TOKENS issues a new refresh token as well
        policy.set(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data.get("refresh"),
        )
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        res = Response({"detail": "logged out"}, status=status.HTTP_200_OK)
        CookiePolicy.from_settings().clear(res)
        return res
