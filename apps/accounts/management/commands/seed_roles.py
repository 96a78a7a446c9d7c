from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from apps.accounts.models import User, UserRole


class Command(BaseCommand):
    help = "Create the back office role groups and attach users to the group of their role."

    def add_arguments(self, parser):
        parser.add_argument("--sync-users", action="store_true", help="Add every user to the group matching its role.")

    def handle(self, *args, **options):
        groups = {}
        for role in UserRole.values:
            group, created = Group.objects.get_or_create(name=role)
            groups[role] = group
            self.stdout.write(self.style.SUCCESS(f"{group.name}: {'created' if created else 'exists'}"))

        if not options["sync_users"]:
            return

        synced = 0
        for user in User.objects.filter(is_active=True):
            group = groups.get(user.role)
            if group and not user.groups.filter(pk=group.pk).exists():
                user.groups.add(group)
                synced += 1
        self.stdout.write(self.style.SUCCESS(f"Users attached to role groups: {synced}"))
