from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import connection
from django.db.utils import DatabaseError


class Command(BaseCommand):
    help = "Report the database vendor, the proximity backend and PostGIS availability."

    def handle(self, *args, **options):
        self.stdout.write(f"Database vendor:   {connection.vendor}")
        self.stdout.write(f"Proximity backend: {settings.PROXIMITY_BACKEND}")

        if connection.vendor != "postgresql":
            self.stdout.write(self.style.WARNING(
                "PostGIS requires PostgreSQL; proximity search uses the haversine backend."
            ))
            return

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT PostGIS_Version()")
                version = cursor.fetchone()[0]
        except DatabaseError as exc:
            self.stdout.write(self.style.ERROR(f"PostGIS is not available: {exc}"))
            return

        self.stdout.write(self.style.SUCCESS(f"PostGIS version:   {version}"))
        if settings.PROXIMITY_BACKEND != "postgis":
            self.stdout.write(self.style.WARNING(
                "PostGIS is installed but PROXIMITY_BACKEND is not 'postgis'."
            ))
