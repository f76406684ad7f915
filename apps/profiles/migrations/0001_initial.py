import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Interest',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Name')),
                ('category', models.CharField(db_index=True, max_length=100, verbose_name='Category')),
                ('subcategory', models.CharField(blank=True, max_length=100, null=True, verbose_name='Subcategory')),
                ('description', models.TextField(blank=True, null=True, verbose_name='Description')),
                ('popularity', models.PositiveIntegerField(default=0, verbose_name='Popularity')),
                ('metadata', models.JSONField(blank=True, null=True, verbose_name='Metadata')),
            ],
            options={
                'verbose_name': 'Interest',
                'verbose_name_plural': 'Interests',
                'ordering': ['-popularity', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Person',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('display_name', models.CharField(max_length=100, verbose_name='Display Name')),
                ('bio', models.CharField(blank=True, max_length=500, null=True, verbose_name='Bio')),
                ('profile_image_url', models.URLField(blank=True, max_length=500, null=True, verbose_name='Profile Image URL')),
                ('phone', models.CharField(blank=True, max_length=30, null=True, verbose_name='Phone')),
                ('latitude', models.FloatField(blank=True, null=True, verbose_name='Latitude')),
                ('longitude', models.FloatField(blank=True, null=True, verbose_name='Longitude')),
                ('city', models.CharField(blank=True, max_length=100, null=True, verbose_name='City')),
                ('region', models.CharField(blank=True, max_length=100, null=True, verbose_name='Region')),
                ('community', models.CharField(blank=True, max_length=100, null=True, verbose_name='Community')),
                ('proximity_radius_km', models.PositiveIntegerField(default=5, verbose_name='Proximity Radius (km)')),
                ('location_privacy', models.CharField(choices=[('EXACT', 'Exact location'), ('APPROXIMATE', 'Approximate (~1 km)'), ('CITY_ONLY', 'City only'), ('HIDDEN', 'Hidden')], default='APPROXIMATE', max_length=20, verbose_name='Location Privacy')),
                ('age_range', models.CharField(blank=True, max_length=20, null=True, verbose_name='Age Range')),
                ('gender', models.CharField(blank=True, max_length=20, null=True, verbose_name='Gender')),
                ('archetype', models.CharField(blank=True, max_length=50, null=True, verbose_name='Archetype')),
                ('connection_style', models.CharField(blank=True, max_length=50, null=True, verbose_name='Connection Style')),
                ('personality_traits', models.JSONField(blank=True, null=True, verbose_name='Personality Traits')),
                ('group_preferences', models.JSONField(blank=True, null=True, verbose_name='Group Preferences')),
                ('leadership_signals', models.JSONField(blank=True, null=True, verbose_name='Leadership Signals')),
                ('is_potential_shepherd', models.BooleanField(default=False, verbose_name='Is Potential Shepherd')),
                ('safety_flags', models.JSONField(blank=True, default=list, verbose_name='Safety Flags')),
                ('onboarding_level', models.PositiveSmallIntegerField(default=0, verbose_name='Onboarding Level')),
                ('last_active_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Last Active At')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('blocked_persons', models.ManyToManyField(blank=True, related_name='blocked_by', to='profiles.person', verbose_name='Blocked Persons')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='person', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Person',
                'verbose_name_plural': 'Persons',
                'indexes': [
                    models.Index(fields=['onboarding_level'], name='person_onboarding_idx'),
                    models.Index(fields=['latitude', 'longitude'], name='person_lat_lng_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PersonInterest',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('proficiency_level', models.PositiveSmallIntegerField(default=3, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)], verbose_name='Proficiency Level')),
                ('interest', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='person_interests', to='profiles.interest', verbose_name='Interest')),
                ('person', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interests', to='profiles.person', verbose_name='Person')),
            ],
            options={
                'verbose_name': 'Person Interest',
                'verbose_name_plural': 'Person Interests',
                'constraints': [
                    models.UniqueConstraint(fields=('person', 'interest'), name='unique_person_interest'),
                ],
            },
        ),
    ]
