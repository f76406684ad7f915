from django.conf import settings
from django.db import migrations


INDEX_NAME = 'person_location_geog_gist'

CREATE_SQL = f"""
    CREATE EXTENSION IF NOT EXISTS postgis;
    CREATE INDEX IF NOT EXISTS {INDEX_NAME}
        ON profiles_person
        USING GIST ((ST_SetSRID(ST_MakePoint(longitude, latitude), 4326)::geography))
        WHERE latitude IS NOT NULL AND longitude IS NOT NULL;
"""

DROP_SQL = f"DROP INDEX IF EXISTS {INDEX_NAME};"


def _postgis_enabled(schema_editor):
    return schema_editor.connection.vendor == 'postgresql' and settings.PROXIMITY_BACKEND == 'postgis'


def create_geography_index(apps, schema_editor):
    # SQLite and plain PostgreSQL deployments run the haversine backend without it
    if _postgis_enabled(schema_editor):
        schema_editor.execute(CREATE_SQL)


def drop_geography_index(apps, schema_editor):
    if _postgis_enabled(schema_editor):
        schema_editor.execute(DROP_SQL)


class Migration(migrations.Migration):

    dependencies = [
        ('profiles', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_geography_index, drop_geography_index),
    ]
