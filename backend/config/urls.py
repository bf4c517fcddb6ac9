from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.api import AdminUserViewSet, LoginView, MeView, RegisterView
from bookings.api import BookingViewSet
from payments.api import MockPaymentConfirmView, PassViewSet, StripeWebhookView
from studio.api import (
    AdminClassTypeViewSet,
    AdminInstructorViewSet,
    AdminSessionViewSet,
    SessionViewSet,
)

router = DefaultRouter()
router.register(r"sessions", SessionViewSet, basename="session")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"passes", PassViewSet, basename="pass")
router.register(r"admin/users", AdminUserViewSet, basename="admin-user")
router.register(r"admin/class-types", AdminClassTypeViewSet, basename="admin-class-type")
router.register(r"admin/instructors", AdminInstructorViewSet, basename="admin-instructor")
router.register(r"admin/sessions", AdminSessionViewSet, basename="admin-session")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/register/", RegisterView.as_view(), name="auth-register"),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),
    path("api/webhooks/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("api/payments/mock/confirm/", MockPaymentConfirmView.as_view(), name="mock-payment-confirm"),
    path("api/", include(router.urls)),
]
