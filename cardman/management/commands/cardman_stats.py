"""Management command to print loyalty card statistics."""

from django.core.management.base import BaseCommand

from cardman.service import CardService
from cardman.services.stats import StatsAggregator, get_activity_policy


class Command(BaseCommand):
    help = "Print client totals and monthly trends"

    def add_arguments(self, parser):
        parser.add_argument(
            "--months",
            type=int,
            default=12,
            help="Number of months in the trend series",
        )
        parser.add_argument(
            "--policy",
            default=None,
            help="Override ACTIVE_CLIENT_POLICY (name or dotted path)",
        )

    def handle(self, *args, **options):
        aggregator = StatsAggregator(
            CardService.store(),
            active_policy=get_activity_policy(options["policy"]),
        )
        stats = aggregator.summary()
        self.stdout.write(f"Total clients:  {stats.total_clients}")
        self.stdout.write(f"Active clients: {stats.active_clients}")
        self.stdout.write(f"Total points:   {stats.total_points}")
        self.stdout.write(f"Average points: {stats.average_points}")

        trends = aggregator.monthly_trends(months=options["months"])
        self.stdout.write("")
        self.stdout.write("Month    Registrations  Active")
        for label, registered, active in zip(
            trends.labels, trends.registrations, trends.active_clients
        ):
            self.stdout.write(f"{label}  {registered:>13}  {active:>6}")

        self.stdout.write(self.style.SUCCESS(f"Stats computed for {stats.total_clients} clients."))
