import logging
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.blind_dating.cleanup import cleanup_sessions

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'End expired and abandoned blind date sessions and clear stale queue entries'

    def add_arguments(self, parser):
        parser.add_argument(
            '--once',
            action='store_true',
            help='Run a single sweep and exit'
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=settings.BLIND_DATE_CLEANUP_INTERVAL_SECONDS,
            help='Seconds between sweeps when running continuously'
        )

    def handle(self, *args, **options):
        if options['once']:
            self.report(cleanup_sessions())
            return

        interval = max(1, options['interval'])
        self.stdout.write(f'🧹 Blind date cleanup running every {interval}s (Ctrl+C to stop)')

        try:
            while True:
                try:
                    self.report(cleanup_sessions())
                except Exception:
                    # Keep the loop alive, the next tick retries
                    logger.exception('Blind date cleanup sweep failed')
                time.sleep(interval)
        except KeyboardInterrupt:
            self.stdout.write('Stopped.')

    def report(self, result):
        total = result['expired'] + result['abandoned']
        if total or result['stale_queue_entries']:
            self.stdout.write(
                self.style.SUCCESS(
                    f"✅ Ended {result['expired']} expired and {result['abandoned']} abandoned sessions, "
                    f"removed {result['stale_queue_entries']} stale queue entries"
                )
            )
        else:
            self.stdout.write(self.style.SUCCESS('✓ Nothing to clean up'))
