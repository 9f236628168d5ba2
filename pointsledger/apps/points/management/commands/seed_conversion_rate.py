from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from pointsledger.apps.points.config import get_conversion_config
from pointsledger.apps.points.models import ConversionRate
from pointsledger.apps.points.repositories import ConversionRateRepository


class Command(BaseCommand):
    help = "Publish the configured default points -> CVC rate if no rate exists yet."

    def add_arguments(self, parser):
        parser.add_argument(
            "--force",
            action="store_true",
            help="Publish the default rate even if rates already exist (deactivates the current one).",
        )

    def handle(self, *args, **options):
        default_rate = get_conversion_config().default_rate
        if not default_rate:
            raise CommandError("POINTS_CONVERSION['DEFAULT_RATE'] is not configured.")

        if ConversionRate.objects.exists() and not options["force"]:
            self.stdout.write(self.style.WARNING("Conversion rates already exist; nothing to do."))
            return

        rates = ConversionRateRepository()
        with transaction.atomic():
            rates.deactivate_all_rates()
            rate = rates.create(
                points_per_cvc=int(default_rate["points_per_cvc"]),
                minimum_points=int(default_rate["minimum_points"]),
                minimum_cvc=default_rate["minimum_cvc"],
                claim_fee_eth=default_rate["claim_fee_eth"],
                is_active=bool(default_rate.get("is_active", True)),
                effective_from=timezone.now(),
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Published rate {rate.pk}: {rate.points_per_cvc} points per CVC, "
                f"minimum {rate.minimum_points} points"
            )
        )
