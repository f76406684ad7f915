import os
from celery import Celery
from celery.schedules import crontab


os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'brotherhood.settings')
app = Celery('brotherhood')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()



# Define all beat schedules in one dictionary
app.conf.beat_schedule = {
    # Repair group counters that drifted from their active memberships
    'reconcile-group-sizes-every-day': {
        'task': 'apps.gatherings.tasks.reconcile_group_sizes',
        'schedule': crontab(hour=3, minute=0),
    },
}



# celery -A brotherhood worker -l info
# celery -A brotherhood beat -l info
