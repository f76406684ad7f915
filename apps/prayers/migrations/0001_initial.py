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
            name='PrayerPost',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('content', models.CharField(max_length=500, verbose_name='Content')),
                ('prayer_count', models.PositiveIntegerField(default=0, verbose_name='Prayer Count')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted At')),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prayer_posts', to='profiles.person', verbose_name='Author')),
            ],
            options={
                'verbose_name': 'Prayer Post',
                'verbose_name_plural': 'Prayer Posts',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['author', 'created_at'], name='prayer_author_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PrayerResponse',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Created At')),
                ('person', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prayer_responses', to='profiles.person', verbose_name='Person')),
                ('prayer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='responses', to='prayers.prayerpost', verbose_name='Prayer')),
            ],
            options={
                'verbose_name': 'Prayer Response',
                'verbose_name_plural': 'Prayer Responses',
                'constraints': [
                    models.UniqueConstraint(fields=('prayer', 'person'), name='unique_prayer_response'),
                ],
            },
        ),
    ]
