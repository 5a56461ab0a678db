from django.core.management.base import BaseCommand

from apps.offers.services import OfferService


class Command(BaseCommand):
    help = "Expire every active offer whose response window has closed"

    def handle(self, *args, **options):
        expired_count = OfferService.sweep_expired_offers()

        if expired_count:
            self.stdout.write(
                self.style.SUCCESS(f"Expired {expired_count} offer(s)")
            )
        else:
            self.stdout.write("No offers to expire")
