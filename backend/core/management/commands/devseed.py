from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from studio.models import ClassSession, ClassType, Instructor


SEED_PASSWORD = "Serenity123!"
ADMIN_EMAIL = "admin@serenityyoga.test"
ADMIN_PASSWORD = "AdminSerenity123!"
SEED_DAYS = 7
DAILY_SLOTS = (
    (time(7, 0), "Vinyasa Flow", "Maya Chen", "Studio A"),
    (time(18, 30), "Restorative Yin", "Leo Park", "Studio B"),
)


class Command(BaseCommand):
    help = "Populate the local development database with a sample studio schedule."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating users"))
            self._ensure_user(ADMIN_EMAIL, "Studio Admin", User.ADMIN, ADMIN_PASSWORD)
            self._ensure_user("member@serenityyoga.test", "Mia Member", User.USER, SEED_PASSWORD)
            maya = self._ensure_user("maya@serenityyoga.test", "Maya Chen", User.INSTRUCTOR, SEED_PASSWORD)
            leo = self._ensure_user("leo@serenityyoga.test", "Leo Park", User.INSTRUCTOR, SEED_PASSWORD)

            self.stdout.write(self.style.MIGRATE_HEADING("Creating instructors & class types"))
            instructors = {
                "Maya Chen": self._ensure_instructor(maya, "RYT-500, vinyasa and power yoga."),
                "Leo Park": self._ensure_instructor(leo, "Yin and restorative specialist."),
            }
            class_types = {
                "Vinyasa Flow": self._ensure_class_type(
                    "Vinyasa Flow", 60, 16, "All levels", "Breath-linked movement through sun salutations."
                ),
                "Restorative Yin": self._ensure_class_type(
                    "Restorative Yin", 75, 12, "Beginner", "Long, supported holds to close the day."
                ),
            }

            self.stdout.write(self.style.MIGRATE_HEADING("Scheduling sessions"))
            tz = timezone.get_current_timezone()
            today = timezone.localdate()
            created_count = 0
            for offset in range(1, SEED_DAYS + 1):
                day = today + timedelta(days=offset)
                for start_time, class_name, instructor_name, location in DAILY_SLOTS:
                    class_type = class_types[class_name]
                    starts_at = timezone.make_aware(datetime.combine(day, start_time), tz)
                    _, created = ClassSession.objects.get_or_create(
                        class_type=class_type,
                        instructor=instructors[instructor_name],
                        starts_at=starts_at,
                        defaults={
                            "ends_at": starts_at + timedelta(minutes=class_type.duration_minutes),
                            "capacity": class_type.default_capacity,
                            "location": location,
                        },
                    )
                    created_count += int(created)
            self.stdout.write(self.style.NOTICE(f"{created_count} new sessions scheduled"))

        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Sample login accounts use password: {SEED_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Admin {ADMIN_EMAIL} password: {ADMIN_PASSWORD}"))

    def _ensure_user(self, email: str, name: str, role: str, password: str) -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={"username": email, "name": name, "role": role},
        )
        fields_to_update = {}
        if user.name != name:
            fields_to_update["name"] = name
        if user.role != role:
            fields_to_update["role"] = role
        if fields_to_update:
            for attr, value in fields_to_update.items():
                setattr(user, attr, value)
            user.save(update_fields=list(fields_to_update.keys()))
        if created or not user.has_usable_password():
            user.set_password(password)
            user.save(update_fields=["password"])
        return user

    def _ensure_instructor(self, user: User, bio: str) -> Instructor:
        instructor, _ = Instructor.objects.update_or_create(
            user=user,
            defaults={"name": user.name, "email": user.email, "bio": bio, "is_active": True},
        )
        return instructor

    def _ensure_class_type(
        self,
        name: str,
        duration_minutes: int,
        default_capacity: int,
        difficulty: str,
        description: str,
    ) -> ClassType:
        class_type, _ = ClassType.objects.update_or_create(
            name=name,
            defaults={
                "duration_minutes": duration_minutes,
                "default_capacity": default_capacity,
                "difficulty": difficulty,
                "description": description,
                "is_active": True,
            },
        )
        return class_type
