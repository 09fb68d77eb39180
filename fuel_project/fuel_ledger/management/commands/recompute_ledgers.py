from django.core.management.base import BaseCommand

from fuel_ledger.tasks import recompute_all_ledgers


class Command(BaseCommand):
    help = "Re-derives total_lts/balance on every live fuel record."

    def add_arguments(self, parser):
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the job on Celery instead of running it here",
        )

    def handle(self, *args, **options):
        if options["run_async"]:
            result = recompute_all_ledgers.delay()
            self.stdout.write(self.style.NOTICE(f"Queued task {result.id}"))
            return
        fixed = recompute_all_ledgers()
        self.stdout.write(self.style.SUCCESS(f"{fixed} fuel records corrected."))
