import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from .exceptions import SessionLimitReached, SlotUnavailable
from .models import MentorProfile, Payment, Session, UserProfile
from .notifications import SESSIONS_LINK, notify
from .wallet import credit_mentor_wallet, split_commission, to_money

logger = logging.getLogger(__name__)

# Moves a mentor may make on a session they host. "approved" is kept as an
# alias of "accepted" for older clients.
STATUS_TRANSITIONS = {
    "pending": {"accepted", "approved", "cancelled"},
    "accepted": {"approved", "completed", "cancelled"},
    "approved": {"accepted", "completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

STATUS_NOTIFICATIONS = {
    "accepted": ("session_accepted", "Session Accepted"),
    "cancelled": ("session_cancelled", "Session Cancelled"),
}


def display_name(user):
    profile = getattr(user, "userprofile", None)
    if profile and profile.name:
        return profile.name
    return user.get_full_name() or user.email


def resolve_subscription_booking(candidate_profile, mentor_user, platform_settings):
    """Return True when the booking should be consumed against the plan quota."""
    if not candidate_profile.has_active_subscription():
        return False
    if not candidate_profile.subscribed_mentors.filter(id=mentor_user.id).exists():
        return False
    plan = candidate_profile.subscription_plan
    if candidate_profile.sessions_used >= platform_settings.session_limit_for(plan):
        raise SessionLimitReached(plan)
    return True


def book_session(candidate, data, platform_settings):
    """Create a session for ``candidate`` from validated booking ``data``.

    Subscription bookings are free, auto-accepted and count against the plan.
    Manual-payment bookings credit the mentor's share to the wallet right away.
    The session, its payment row and the wallet/quota update commit together.
    """
    candidate_profile = getattr(candidate, "userprofile", None)
    if candidate_profile is None or candidate_profile.role != "candidate":
        raise PermissionDenied("Only students can book mentoring sessions.")

    mentor_profile = (
        MentorProfile.objects.select_related("user")
        .filter(user_id=data["mentor"])
        .first()
    )
    if mentor_profile is None:
        raise NotFound("Mentor not found")
    mentor_user = mentor_profile.user

    is_subscription = resolve_subscription_booking(candidate_profile, mentor_user, platform_settings)

    transaction_id = (data.get("transaction_id") or "").strip()
    amount = data.get("amount")
    if not is_subscription and (not transaction_id or not amount):
        raise ValidationError({"detail": "Payment transaction id and amount are required."})

    slot_id = data.get("slot_id")
    slot = mentor_profile.availability_slots.filter(id=slot_id).first() if slot_id else None
    if slot is None:
        raise ValidationError({"detail": "Invalid or missing availability slot"})

    start_time = data["start_time"]
    with transaction.atomic():
        conflict = Session.objects.filter(
            mentor=mentor_user,
            start_time=start_time,
            status__in=Session.ACTIVE_STATUSES,
        ).exists()
        if conflict:
            raise SlotUnavailable()

        session = Session.objects.create(
            mentor=mentor_user,
            candidate=candidate,
            start_time=start_time,
            duration=data.get("duration") or 60,
            notes=data.get("notes", ""),
            slot=slot,
            is_subscription=is_subscription,
            status="accepted" if is_subscription else "pending",
            payment_status="paid",
            amount=Decimal("0.00") if is_subscription else to_money(amount),
            meeting_link=mentor_profile.meeting_link if is_subscription else "",
        )

        if is_subscription:
            UserProfile.objects.filter(pk=candidate_profile.pk).update(
                sessions_used=F("sessions_used") + 1
            )
            Payment.objects.create(
                user=candidate,
                mentor=mentor_user,
                amount=Decimal("0.00"),
                mentor_amount=Decimal("0.00"),
                admin_commission=Decimal("0.00"),
                transaction_id=f"SUB-{session.id}",
                payment_method="system",
                type="session_booking",
                status="completed",
                reference=f"session:{session.id}",
            )
        else:
            mentor_amount, admin_commission = split_commission(
                session.amount, platform_settings.commission_rate
            )
            Payment.objects.create(
                user=candidate,
                mentor=mentor_user,
                amount=session.amount,
                mentor_amount=mentor_amount,
                admin_commission=admin_commission,
                transaction_id=transaction_id,
                payment_method=data.get("payment_method") or "bkash",
                type="session_booking",
                status="completed",
                reference=f"session:{session.id}",
            )
            credit_mentor_wallet(mentor_profile, mentor_amount)

    logger.info(
        "Session %s booked by candidate %s with mentor %s (subscription=%s)",
        session.id,
        candidate.id,
        mentor_user.id,
        is_subscription,
    )
    start_label = timezone.localtime(session.start_time).strftime("%d %b %Y, %I:%M %p")
    notify(
        mentor_user,
        "session_request",
        "New Session Request",
        f"{display_name(candidate)} requested a session on {start_label}.",
        sender=candidate,
        link=SESSIONS_LINK,
    )
    return session


def update_session_status(session, actor, next_status):
    """Apply a mentor's status change and tell the candidate about it.

    Money is not touched here; the mentor was credited when the session was
    booked.
    """
    if session.mentor_id != actor.id:
        raise PermissionDenied("Only the assigned mentor can update this session.")
    if next_status not in STATUS_TRANSITIONS:
        raise ValidationError({"status": f"Unknown session status '{next_status}'."})
    if next_status == session.status:
        return session
    if next_status not in STATUS_TRANSITIONS[session.status]:
        raise ValidationError(
            {"status": f"Cannot move a {session.status} session to {next_status}."}
        )

    session.status = next_status
    update_fields = ["status", "updated_at"]
    if next_status == "accepted":
        mentor_profile = MentorProfile.objects.filter(user_id=actor.id).first()
        session.meeting_link = mentor_profile.meeting_link if mentor_profile else ""
        update_fields.append("meeting_link")
    session.save(update_fields=update_fields)

    notification_type, title = STATUS_NOTIFICATIONS.get(next_status, ("system", "Session Update"))
    notify(
        session.candidate,
        notification_type,
        title,
        f"Your session with {display_name(actor)} is now {next_status}.",
        sender=actor,
        link=SESSIONS_LINK,
    )
    return session
