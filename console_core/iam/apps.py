from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "console_core.iam"
    label = "iam"
    verbose_name = "Console identity and roles"

    def ready(self) -> None:
        # registers the JWT auth scheme with drf-spectacular
        from console_core.iam import openapi  # noqa: F401
