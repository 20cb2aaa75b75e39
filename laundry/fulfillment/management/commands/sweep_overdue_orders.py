"""
Complete delivered orders nobody disputed within the auto-completion window.

Meant to be run by cron or any other scheduler; running it more often than
needed is harmless.
"""

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from fulfillment.exceptions import BusinessException
from fulfillment.services import orchestrator


class Command(BaseCommand):
    help = "Auto-complete delivered orders past the auto-completion window"

    def add_arguments(self, parser):
        parser.add_argument(
            '--now',
            help="ISO-8601 reference time to sweep at (defaults to the current time)",
        )

    def handle(self, *args, **options):
        now = None
        if options['now']:
            now = parse_datetime(options['now'])
            if now is None:
                raise CommandError(f"Invalid --now value: {options['now']}")
            if timezone.is_naive(now):
                now = timezone.make_aware(now)

        try:
            completed = orchestrator.sweep_overdue_orders(now)
        except BusinessException as e:
            raise CommandError(e.message)

        for order_id in completed:
            self.stdout.write(f"Completed {order_id}")
        self.stdout.write(self.style.SUCCESS(f"{len(completed)} order(s) auto-completed"))
