import logging

from dateutil.relativedelta import relativedelta
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from .booking import display_name
from .models import Payment, Subscription
from .notifications import SESSIONS_LINK, notify

logger = logging.getLogger(__name__)

User = get_user_model()

PLAN_MONTHS = {
    "monthly": 1,
    "yearly": 12,
}


def plan_expiry(start, plan):
    return start + relativedelta(months=PLAN_MONTHS[plan])


def purchase_subscription(user, plan, platform_settings, payment_method="bkash", transaction_id=""):
    """Start a new billing period for ``user``.

    Every purchase, renewals included, resets the session counter and clears
    the selected mentors.
    """
    if plan not in PLAN_MONTHS:
        raise ValidationError({"detail": "Invalid plan"})

    profile = user.userprofile
    now = timezone.now()
    expires = plan_expiry(now, plan)
    price = platform_settings.price_for(plan)

    with transaction.atomic():
        payment = Payment.objects.create(
            user=user,
            amount=price,
            transaction_id=(transaction_id or "").strip() or f"SUBSCRIPTION-{int(now.timestamp() * 1000)}",
            payment_method=payment_method or "bkash",
            type="subscription",
            status="completed",
            reference=plan,
        )
        Subscription.objects.filter(user=user, is_active=True).update(is_active=False)
        subscription = Subscription.objects.create(
            user=user,
            plan=plan,
            start_date=now,
            end_date=expires,
            payment=payment,
        )
        profile.subscription_plan = plan
        profile.subscription_expires = expires
        profile.sessions_used = 0
        profile.save(
            update_fields=["subscription_plan", "subscription_expires", "sessions_used", "updated_at"]
        )
        profile.subscribed_mentors.clear()

    logger.info("User %s purchased %s plan until %s", user.id, plan, expires.isoformat())
    return subscription


def select_mentors(user, mentor_ids, platform_settings):
    """Replace the subscribed mentor list; returns the users newly added."""
    profile = user.userprofile
    if not profile.has_active_subscription():
        raise PermissionDenied("An active subscription is required to select mentors.")

    unique_ids = list(dict.fromkeys(mentor_ids))
    limit = platform_settings.mentor_limit_for(profile.subscription_plan)
    if len(unique_ids) > limit:
        raise ValidationError({"detail": f"Your plan only allows selecting {limit} mentors."})

    mentors = list(User.objects.filter(id__in=unique_ids, userprofile__role="mentor"))
    if len(mentors) != len(unique_ids):
        raise ValidationError({"detail": "Every selected user must be a mentor."})

    previous_ids = set(profile.subscribed_mentors.values_list("id", flat=True))
    profile.subscribed_mentors.set(mentors)
    added = [mentor for mentor in mentors if mentor.id not in previous_ids]

    for mentor in added:
        notify(
            mentor,
            "system",
            "Primary Mentor Selected",
            f"{display_name(user)} selected you as a primary mentor.",
            sender=user,
            link=SESSIONS_LINK,
        )
    return added
