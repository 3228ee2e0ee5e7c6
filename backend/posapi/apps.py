from django.apps import AppConfig


class PosApiConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "posapi"
    verbose_name = "Cafe POS"

    def ready(self):
        from . import signals  # noqa: F401
        from .store import Store

        # One store client for the whole process, handed to every workflow.
        self.store = Store()
