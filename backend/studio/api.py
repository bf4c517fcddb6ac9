import logging
from dataclasses import asdict

from django.db import transaction
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsStudioAdmin
from bookings.models import Booking
from bookings.services.availability import session_availability
from core.errors import Conflict
from .filters import SessionFilter
from .models import ClassSession, ClassType, Instructor
from .serializers import (
    AdminSessionSerializer,
    ClassTypeDetailSerializer,
    ClassTypeSerializer,
    InstructorDetailSerializer,
    InstructorSerializer,
    SessionSerializer,
)

logger = logging.getLogger(__name__)


class SessionViewSet(viewsets.ReadOnlyModelViewSet):
    """Public class schedule."""

    serializer_class = SessionSerializer
    permission_classes = [permissions.AllowAny]
    filterset_class = SessionFilter
    ordering_fields = ["starts_at", "capacity", "created_at"]
    ordering = ["starts_at"]

    def get_queryset(self):
        queryset = ClassSession.objects.select_related("class_type", "instructor").with_booked_count()
        if self.action == "list":
            params = self.request.query_params
            # An explicit date or window replaces the default "from now on" view.
            if not any(params.get(key) for key in ("date", "start", "end")):
                queryset = queryset.upcoming()
        return queryset.order_by("starts_at", "id")

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):
        session = get_object_or_404(ClassSession, pk=pk)
        return Response({"session_id": session.pk, **asdict(session_availability(session))})


class _ProtectedDeleteMixin:
    protected_message = "Remove the sessions that reference this record first."

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise Conflict(self.protected_message)
        logger.info("%s %s deleted by %s", type(instance).__name__, instance.pk, self.request.user.pk)


class AdminClassTypeViewSet(_ProtectedDeleteMixin, viewsets.ModelViewSet):
    queryset = ClassType.objects.all()
    permission_classes = [permissions.IsAuthenticated, IsStudioAdmin]
    filterset_fields = ["is_active", "difficulty"]
    search_fields = ["name", "description"]
    ordering_fields = ["name", "created_at"]
    protected_message = "This class type is used by scheduled sessions. Remove those sessions first."

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ClassTypeDetailSerializer
        return ClassTypeSerializer


class AdminInstructorViewSet(_ProtectedDeleteMixin, viewsets.ModelViewSet):
    queryset = Instructor.objects.all()
    permission_classes = [permissions.IsAuthenticated, IsStudioAdmin]
    filterset_fields = ["is_active"]
    search_fields = ["name", "email"]
    ordering_fields = ["name", "created_at"]
    protected_message = "This instructor teaches scheduled sessions. Reassign or remove those sessions first."

    def get_serializer_class(self):
        if self.action == "retrieve":
            return InstructorDetailSerializer
        return InstructorSerializer


class AdminSessionViewSet(viewsets.ModelViewSet):
    serializer_class = AdminSessionSerializer
    permission_classes = [permissions.IsAuthenticated, IsStudioAdmin]
    filterset_class = SessionFilter
    ordering_fields = ["starts_at", "capacity", "created_at"]

    def get_queryset(self):
        return (
            ClassSession.objects.select_related("class_type", "instructor")
            .prefetch_related("bookings__user")
            .with_booked_count()
            .order_by("starts_at", "id")
        )

    def perform_create(self, serializer):
        session = serializer.save()
        logger.info("Session %s scheduled by %s", session.pk, self.request.user.pk)

    def perform_update(self, serializer):
        session = serializer.save()
        logger.info("Session %s updated by %s", session.pk, self.request.user.pk)

    def perform_destroy(self, instance):
        with transaction.atomic():
            session = ClassSession.objects.select_for_update().get(pk=instance.pk)
            if session.bookings.filter(status=Booking.CONFIRMED).exists():
                raise Conflict("This session has confirmed bookings. Cancel them before deleting it.")
            session.delete()
        logger.info("Session %s deleted by %s", instance.pk, self.request.user.pk)
