# console_core/modules/management/commands/seed_modules.py

from django.core.management.base import BaseCommand

from console_core.modules.services import ModuleService


class Command(BaseCommand):
    help = "Ensure the module catalog and the default role access matrix exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--modules-only",
            action="store_true",
            help="Only create module definitions, not the role access matrix.",
        )

    def handle(self, *args, **options):
        counts = ModuleService.seed_catalog(with_role_matrix=not options["modules_only"])
        self.stdout.write(
            self.style.SUCCESS(
                f"Modules ensured. Newly created: {counts['modules_created']} modules, "
                f"{counts['role_access_created']} role access rows"
            )
        )
