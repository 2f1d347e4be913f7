# clinical/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from clinical.models import User

TEST_SET = [
    ("doctor1", User.ROLE_DOCTOR),
    ("nurse1", User.ROLE_NURSE),
    ("admin1", User.ROLE_ADMIN),
    ("reception1", User.ROLE_RECEPTIONIST),
]


class Command(BaseCommand):
    help = "Ensure test staff accounts exist with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="clinical-test-pw")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "password": password, "is_active": True},
            )
            if not created:
                # reset password, role and active flag
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
