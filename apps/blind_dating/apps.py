from django.apps import AppConfig


class BlindDatingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.blind_dating'
    verbose_name = 'Blind Dating'
