# Seed/update the Interest catalogue from DEFAULT_INTERESTS.

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.profiles.models import Interest
from apps.profiles.constants import DEFAULT_INTERESTS


class Command(BaseCommand):
    help = "Seed/update the Interest catalogue from DEFAULT_INTERESTS. Idempotent."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would change without writing to the database.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        dry_run = options.get("dry_run", False)

        created = 0
        updated = 0
        for category, names in DEFAULT_INTERESTS.items():
            for name in names:
                if dry_run:
                    if Interest.objects.filter(name=name).exists():
                        updated += 1
                    else:
                        created += 1
                    continue

                _, was_created = Interest.objects.update_or_create(
                    name=name,
                    defaults={"category": category},
                )
                if was_created:
                    created += 1
                else:
                    updated += 1

        prefix = "[dry-run] " if dry_run else ""
        self.stdout.write(self.style.SUCCESS(
            f"{prefix}Interests seeded: created={created}, updated={updated}"
        ))
