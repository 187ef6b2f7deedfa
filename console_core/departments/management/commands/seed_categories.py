# console_core/departments/management/commands/seed_categories.py

from django.core.management.base import BaseCommand

from console_core.departments.seeding import seed_default_categories, seed_department_templates


class Command(BaseCommand):
    help = "Ensure the system default categories exist (idempotent). Optionally seed template departments."

    def add_arguments(self, parser):
        parser.add_argument(
            "--with-templates",
            action="store_true",
            help="Also create template departments from the built-in presets.",
        )

    def handle(self, *args, **options):
        created = seed_default_categories()
        self.stdout.write(self.style.SUCCESS(f"Categories ensured. Newly created: {created}"))

        if options["with_templates"]:
            created = seed_department_templates()
            self.stdout.write(self.style.SUCCESS(f"Template departments ensured. Newly created: {created}"))
