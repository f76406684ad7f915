from django.apps import AppConfig


class HuddlesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.huddles'
