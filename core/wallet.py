import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound

from .exceptions import InsufficientWalletBalance
from .models import MentorProfile, Payment
from .notifications import FINANCES_LINK, notify

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
PAYOUT_TOLERANCE = Decimal("0.01")
DRIFT_TOLERANCE = Decimal("0.10")
# Share assumed for legacy booking payments recorded without a split.
DEFAULT_MENTOR_SHARE = Decimal("0.80")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def split_commission(amount, commission_rate):
    """Return ``(mentor_amount, admin_commission)`` for a paid booking.

    The commission is rounded to the cent and the mentor receives the rest, so
    the two parts always add back up to ``amount``.
    """
    amount = to_money(amount)
    admin_commission = to_money(amount * Decimal(str(commission_rate)) / Decimal("100"))
    return amount - admin_commission, admin_commission


def credit_mentor_wallet(mentor_profile, mentor_amount):
    MentorProfile.objects.filter(pk=mentor_profile.pk).update(
        wallet_balance=F("wallet_balance") + mentor_amount,
        earnings=F("earnings") + mentor_amount,
    )


def default_payout_reference():
    return f"PAY-{int(timezone.now().timestamp() * 1000)}"


def settle_payout(mentor_user, amount, transaction_id="", processed_by=None):
    """Debit a mentor wallet and record the payout in the ledger.

    Raises ``NotFound`` when the user has no mentor profile and
    ``InsufficientWalletBalance`` when ``amount`` exceeds the balance by more
    than a cent; the balance is left untouched in both cases.
    """
    amount = to_money(amount)
    with transaction.atomic():
        profile = (
            MentorProfile.objects.select_for_update()
            .filter(user=mentor_user)
            .first()
        )
        if profile is None:
            raise NotFound("Mentor profile not found")
        if amount > profile.wallet_balance + PAYOUT_TOLERANCE:
            raise InsufficientWalletBalance()

        profile.wallet_balance = max(ZERO, profile.wallet_balance - amount)
        profile.save(update_fields=["wallet_balance", "updated_at"])
        payment = Payment.objects.create(
            user=mentor_user,
            mentor=mentor_user,
            amount=amount,
            mentor_amount=amount,
            transaction_id=(transaction_id or "").strip() or default_payout_reference(),
            payment_method="system",
            type="payout",
            status="completed",
        )

    logger.info(
        "Payout %s of %s settled for mentor %s (balance now %s)",
        payment.transaction_id,
        amount,
        mentor_user.id,
        profile.wallet_balance,
    )
    notify(
        mentor_user,
        "payout",
        "Payout Received",
        f"A payout of ৳{amount} has been sent to your account.",
        sender=processed_by,
        link=FINANCES_LINK,
    )
    return profile, payment


def wallet_ledger_totals(mentor_user):
    """Return ``(earned, paid_out)`` from completed bookings and payouts."""
    earned = ZERO
    booking_payments = Payment.objects.filter(
        mentor=mentor_user, type="session_booking", status="completed"
    ).values_list("amount", "mentor_amount")
    for amount, mentor_amount in booking_payments:
        if mentor_amount is None:
            mentor_amount = to_money(amount * DEFAULT_MENTOR_SHARE)
        earned += mentor_amount

    paid_out = ZERO
    for amount in Payment.objects.filter(
        mentor=mentor_user, type="payout", status="completed"
    ).values_list("amount", flat=True):
        paid_out += amount

    return earned, paid_out


def backfill_default_split(mentor_user):
    """Store the default split on legacy booking payments; returns the row count."""
    legacy = Payment.objects.filter(
        mentor=mentor_user,
        type="session_booking",
        status="completed",
        mentor_amount__isnull=True,
    )
    filled = 0
    for payment in legacy:
        payment.mentor_amount = to_money(payment.amount * DEFAULT_MENTOR_SHARE)
        if payment.admin_commission is None:
            payment.admin_commission = to_money(payment.amount) - payment.mentor_amount
        payment.save(update_fields=["mentor_amount", "admin_commission", "updated_at"])
        filled += 1
    if filled:
        logger.info("Backfilled default split on %s payment(s) for mentor %s", filled, mentor_user.id)
    return filled


def sync_wallet_balance(mentor_profile, dry_run=False):
    """Recompute one wallet from the ledger; returns ``(old, expected, changed)``.

    Outside a dry run, legacy booking payments without a split get the default
    one written back first.
    """
    if not dry_run:
        backfill_default_split(mentor_profile.user)
    earned, paid_out = wallet_ledger_totals(mentor_profile.user)
    expected = max(ZERO, earned - paid_out)
    current = mentor_profile.wallet_balance
    changed = abs(current - expected) > DRIFT_TOLERANCE
    if changed and not dry_run:
        MentorProfile.objects.filter(pk=mentor_profile.pk).update(
            wallet_balance=expected,
            earnings=earned,
        )
        logger.warning(
            "Wallet drift fixed for mentor %s: %s -> %s",
            mentor_profile.user_id,
            current,
            expected,
        )
    return current, expected, changed
