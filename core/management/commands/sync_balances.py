from django.core.management.base import BaseCommand

from core.models import MentorProfile
from core.wallet import sync_wallet_balance, wallet_ledger_totals


class Command(BaseCommand):
    help = "Recompute mentor wallet balances from completed bookings and payouts."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report drift without writing corrected balances.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        mentor_profiles = MentorProfile.objects.select_related("user").order_by("id")
        self.stdout.write(f"Checking {mentor_profiles.count()} mentors...")

        corrected = 0
        for mentor_profile in mentor_profiles:
            earned, paid_out = wallet_ledger_totals(mentor_profile.user)
            current, expected, changed = sync_wallet_balance(mentor_profile, dry_run=dry_run)
            self.stdout.write(
                f"[{mentor_profile.user.email}] income={earned} payouts={paid_out} "
                f"current={current} expected={expected}"
            )
            if changed:
                corrected += 1
                verb = "would update" if dry_run else "updated"
                self.stdout.write(self.style.WARNING(f"  {verb} balance to {expected}"))

        summary = f"{corrected} wallet(s) {'need correction' if dry_run else 'corrected'}."
        self.stdout.write(self.style.SUCCESS(summary))
