# emr_core/common/management/commands/ensure_roles.py

from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group

from emr_core.common.permissions import ALL_ROLES, ROLE_CAPABILITIES


class Command(BaseCommand):
    help = "Ensure the role groups exist (idempotent) and print their capabilities."

    def add_arguments(self, parser):
        parser.add_argument("--verbose-capabilities", action="store_true", help="List capabilities per role.")

    def handle(self, *args, **options):
        created = 0
        for name in ALL_ROLES:
            _, was_created = Group.objects.get_or_create(name=name)
            created += 1 if was_created else 0
            if options.get("verbose_capabilities"):
                caps = ", ".join(sorted(ROLE_CAPABILITIES[name])) or "-"
                self.stdout.write(f"{name}: {caps}")

        self.stdout.write(self.style.SUCCESS(f"Roles ensured. Newly created: {created}"))
