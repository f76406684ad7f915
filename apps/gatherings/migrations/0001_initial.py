import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('profiles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Group',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('description', models.CharField(blank=True, max_length=300, null=True, verbose_name='Description')),
                ('protocol', models.CharField(blank=True, max_length=500, null=True, verbose_name='Protocol')),
                ('image_url', models.URLField(blank=True, max_length=500, null=True, verbose_name='Image URL')),
                ('type', models.CharField(choices=[('HOBBY', 'Hobby'), ('SUPPORT', 'Support'), ('SPIRITUAL', 'Spiritual'), ('PROFESSIONAL', 'Professional'), ('SOCIAL', 'Social'), ('OTHER', 'Other')], max_length=20, verbose_name='Type')),
                ('category', models.CharField(choices=[('CIRCLE', 'Circle'), ('HUDDLE', 'Huddle')], default='CIRCLE', max_length=10, verbose_name='Category')),
                ('location_name', models.CharField(blank=True, max_length=200, null=True, verbose_name='Location Name')),
                ('latitude', models.FloatField(blank=True, null=True, verbose_name='Latitude')),
                ('longitude', models.FloatField(blank=True, null=True, verbose_name='Longitude')),
                ('is_virtual', models.BooleanField(default=False, verbose_name='Is Virtual')),
                ('min_size', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Min Size')),
                ('max_size', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Max Size')),
                ('current_size', models.PositiveIntegerField(default=0, verbose_name='Current Size')),
                ('is_public', models.BooleanField(default=True, verbose_name='Is Public')),
                ('tags', models.JSONField(blank=True, default=list, verbose_name='Tags')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('PAUSED', 'Paused'), ('ARCHIVED', 'Archived')], default='ACTIVE', max_length=10, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='created_groups', to='profiles.person', verbose_name='Created By')),
                ('leaders', models.ManyToManyField(blank=True, related_name='led_groups', to='profiles.person', verbose_name='Leaders')),
            ],
            options={
                'verbose_name': 'Group',
                'verbose_name_plural': 'Groups',
                'indexes': [
                    models.Index(fields=['status', 'is_public', 'category'], name='group_discovery_idx'),
                    models.Index(fields=['latitude', 'longitude'], name='group_lat_lng_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GroupMembership',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('role', models.CharField(choices=[('MEMBER', 'Member'), ('LEADER', 'Leader'), ('CREATOR', 'Creator')], default='MEMBER', max_length=10, verbose_name='Role')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('ACTIVE', 'Active'), ('INACTIVE', 'Inactive'), ('REMOVED', 'Removed')], default='PENDING', max_length=10, verbose_name='Status')),
                ('join_requested_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Join Requested At')),
                ('joined_at', models.DateTimeField(blank=True, null=True, verbose_name='Joined At')),
                ('last_engaged_at', models.DateTimeField(blank=True, null=True, verbose_name='Last Engaged At')),
                ('last_read_at', models.DateTimeField(blank=True, null=True, verbose_name='Last Read At')),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='gatherings.group', verbose_name='Group')),
                ('person', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='profiles.person', verbose_name='Person')),
            ],
            options={
                'verbose_name': 'Group Membership',
                'verbose_name_plural': 'Group Memberships',
                'constraints': [
                    models.UniqueConstraint(fields=('person', 'group'), name='unique_group_membership'),
                ],
                'indexes': [
                    models.Index(fields=['group', 'status'], name='membership_group_status_idx'),
                ],
            },
        ),
    ]
