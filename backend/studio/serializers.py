from datetime import timedelta

from django.utils import timezone
from rest_framework import serializers

from bookings.models import Booking
from bookings.services.availability import Availability, calculate_availability, confirmed_count
from core.errors import Conflict
from .models import ClassSession, ClassType, Instructor

MIN_SESSION_MINUTES = 15
MAX_SESSION_MINUTES = 180
MIN_CAPACITY = 1
MAX_CAPACITY = 50


class ClassTypeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = ClassType
        fields = ["id", "name", "duration_minutes", "difficulty", "image_url"]


class InstructorSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Instructor
        fields = ["id", "name", "image_url"]


class SessionSerializer(serializers.ModelSerializer):
    """Public schedule entry with live availability counts."""

    class_type = ClassTypeSummarySerializer(read_only=True)
    instructor = InstructorSummarySerializer(read_only=True)
    booked_count = serializers.SerializerMethodField()
    remaining_spots = serializers.SerializerMethodField()
    is_full = serializers.SerializerMethodField()

    class Meta:
        model = ClassSession
        fields = [
            "id",
            "class_type",
            "instructor",
            "starts_at",
            "ends_at",
            "capacity",
            "location",
            "booked_count",
            "remaining_spots",
            "is_full",
        ]
        read_only_fields = fields

    def _availability(self, obj: ClassSession) -> Availability:
        booked = getattr(obj, "booked_count", None)
        if booked is None:
            booked = confirmed_count(obj)
        return calculate_availability(obj.capacity, booked)

    def get_booked_count(self, obj: ClassSession) -> int:
        return self._availability(obj).booked_count

    def get_remaining_spots(self, obj: ClassSession) -> int:
        return self._availability(obj).remaining_spots

    def get_is_full(self, obj: ClassSession) -> bool:
        return self._availability(obj).is_full


class SessionReferenceSerializer(serializers.ModelSerializer):
    booked_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = ClassSession
        fields = ["id", "starts_at", "ends_at", "capacity", "location", "booked_count"]


class ClassTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClassType
        fields = [
            "id",
            "name",
            "description",
            "duration_minutes",
            "default_capacity",
            "difficulty",
            "image_url",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_duration_minutes(self, value):
        if not MIN_SESSION_MINUTES <= value <= MAX_SESSION_MINUTES:
            raise serializers.ValidationError(
                f"Duration must be between {MIN_SESSION_MINUTES} and {MAX_SESSION_MINUTES} minutes."
            )
        return value

    def validate_default_capacity(self, value):
        if not MIN_CAPACITY <= value <= MAX_CAPACITY:
            raise serializers.ValidationError(
                f"Capacity must be between {MIN_CAPACITY} and {MAX_CAPACITY}."
            )
        return value


class ClassTypeDetailSerializer(ClassTypeSerializer):
    sessions = serializers.SerializerMethodField()

    class Meta(ClassTypeSerializer.Meta):
        fields = ClassTypeSerializer.Meta.fields + ["sessions"]

    def get_sessions(self, obj: ClassType):
        sessions = ClassSession.objects.filter(class_type=obj).with_booked_count()
        return SessionReferenceSerializer(sessions, many=True).data


class InstructorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Instructor
        fields = [
            "id",
            "user",
            "name",
            "email",
            "phone",
            "bio",
            "credentials",
            "image_url",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]


class InstructorDetailSerializer(InstructorSerializer):
    sessions = serializers.SerializerMethodField()

    class Meta(InstructorSerializer.Meta):
        fields = InstructorSerializer.Meta.fields + ["sessions"]

    def get_sessions(self, obj: Instructor):
        sessions = ClassSession.objects.filter(instructor=obj).with_booked_count()
        return SessionReferenceSerializer(sessions, many=True).data


class SessionBookingSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)
    user_name = serializers.CharField(source="user.name", read_only=True)

    class Meta:
        model = Booking
        fields = ["id", "user", "user_email", "user_name", "status", "created_at"]
        read_only_fields = fields


class AdminSessionSerializer(serializers.ModelSerializer):
    """Admin create/update of sessions with the scheduling rules applied."""

    class_type_name = serializers.CharField(source="class_type.name", read_only=True)
    instructor_name = serializers.CharField(source="instructor.name", read_only=True)
    ends_at = serializers.DateTimeField(required=False)
    capacity = serializers.IntegerField(required=False)
    booked_count = serializers.SerializerMethodField()
    bookings = SessionBookingSerializer(many=True, read_only=True)

    class Meta:
        model = ClassSession
        fields = [
            "id",
            "class_type",
            "class_type_name",
            "instructor",
            "instructor_name",
            "starts_at",
            "ends_at",
            "capacity",
            "location",
            "booked_count",
            "bookings",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def get_booked_count(self, obj: ClassSession) -> int:
        booked = getattr(obj, "booked_count", None)
        if booked is None:
            booked = confirmed_count(obj)
        return booked

    def validate_capacity(self, value):
        if not MIN_CAPACITY <= value <= MAX_CAPACITY:
            raise serializers.ValidationError(
                f"Capacity must be between {MIN_CAPACITY} and {MAX_CAPACITY}."
            )
        return value

    def validate(self, attrs):
        instance = self.instance
        now = timezone.now()

        if instance is not None and instance.starts_at <= now:
            raise serializers.ValidationError(
                {"starts_at": "Sessions that have already started cannot be edited."}
            )

        class_type = attrs.get("class_type") or getattr(instance, "class_type", None)
        instructor = attrs.get("instructor") or getattr(instance, "instructor", None)
        starts_at = attrs.get("starts_at") or getattr(instance, "starts_at", None)

        if "ends_at" in attrs:
            ends_at = attrs["ends_at"]
        elif instance is not None and "starts_at" not in attrs:
            ends_at = instance.ends_at
        elif instance is not None:
            # Keep the existing length when only the start moves.
            ends_at = starts_at + instance.duration
        else:
            ends_at = starts_at + timedelta(minutes=class_type.duration_minutes)
        attrs["ends_at"] = ends_at

        if instance is None:
            if starts_at <= now:
                raise serializers.ValidationError({"starts_at": "Sessions must start in the future."})
            attrs.setdefault("capacity", class_type.default_capacity)
        elif "starts_at" in attrs and starts_at <= now:
            raise serializers.ValidationError({"starts_at": "Sessions must start in the future."})

        if ends_at <= starts_at:
            raise serializers.ValidationError({"ends_at": "End time must be after the start time."})

        minutes = (ends_at - starts_at).total_seconds() / 60
        if not MIN_SESSION_MINUTES <= minutes <= MAX_SESSION_MINUTES:
            raise serializers.ValidationError(
                {
                    "ends_at": (
                        f"Session length must be between {MIN_SESSION_MINUTES} "
                        f"and {MAX_SESSION_MINUTES} minutes."
                    )
                }
            )

        overlapping = ClassSession.objects.filter(
            instructor=instructor,
            starts_at__lt=ends_at,
            ends_at__gt=starts_at,
        )
        if instance is not None:
            overlapping = overlapping.exclude(pk=instance.pk)
        if overlapping.exists():
            raise Conflict("INSTRUCTOR_CONFLICT: instructor already teaches an overlapping session.")

        if instance is not None and "capacity" in attrs:
            confirmed = confirmed_count(instance)
            if attrs["capacity"] < confirmed:
                raise serializers.ValidationError(
                    {"capacity": f"Capacity cannot be lower than the {confirmed} confirmed bookings."}
                )

        return attrs
