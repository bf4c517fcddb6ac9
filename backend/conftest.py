from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from studio.models import ClassSession, ClassType, Instructor

User = get_user_model()


@pytest.fixture
def make_user(db):
    def _make(email="member@example.com", role=User.USER, name="", **extra):
        return User.objects.create_user(
            username=email,
            email=email,
            password="password123",
            name=name,
            role=role,
            **extra,
        )

    return _make


@pytest.fixture
def member(make_user):
    return make_user("member@example.com", name="Mia Member")


@pytest.fixture
def other_member(make_user):
    return make_user("other@example.com", name="Oscar Other")


@pytest.fixture
def studio_admin(make_user):
    return make_user("admin@example.com", role=User.ADMIN, name="Ada Admin")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def class_type(db):
    return ClassType.objects.create(name="Vinyasa Flow", duration_minutes=60, default_capacity=10)


@pytest.fixture
def instructor(db):
    return Instructor.objects.create(name="Maya Chen", email="maya@example.com")


@pytest.fixture
def make_session(class_type, instructor):
    def _make(starts_in=timedelta(days=2), capacity=10, minutes=60, **extra):
        starts_at = timezone.now() + starts_in
        fields = {
            "class_type": class_type,
            "instructor": instructor,
            "starts_at": starts_at,
            "ends_at": starts_at + timedelta(minutes=minutes),
            "capacity": capacity,
            "location": "Studio A",
        }
        fields.update(extra)
        return ClassSession.objects.create(**fields)

    return _make


@pytest.fixture
def session(make_session):
    return make_session()
