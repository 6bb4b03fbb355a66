from django.core.management.base import BaseCommand

from commons import membership


class Command(BaseCommand):
    help = "Retry AI welcome messages for members registered while the AI service was unavailable."

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=10, help="Members to process in this run")

    def handle(self, *args, **options):
        updated = membership.process_pending_welcome_messages(limit=options['limit'])
        self.stdout.write(self.style.SUCCESS(f"Updated {updated} welcome message(s)."))
