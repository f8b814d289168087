from django.apps import AppConfig


class RegistrationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "registration"
    verbose_name = "Marriage Registration"

    def ready(self):
        """Import signal handlers and other app initialization code."""
        import registration.signals  # noqa
