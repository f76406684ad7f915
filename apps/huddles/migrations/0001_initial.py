import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('gatherings', '0001_initial'),
        ('profiles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='HuddleMessage',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('content', models.CharField(max_length=1000, verbose_name='Content')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Created At')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted At')),
                ('huddle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='gatherings.group', verbose_name='Huddle')),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='huddle_messages', to='profiles.person', verbose_name='Sender')),
            ],
            options={
                'verbose_name': 'Huddle Message',
                'verbose_name_plural': 'Huddle Messages',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['huddle', 'created_at'], name='huddle_message_timeline_idx'),
                ],
            },
        ),
    ]
