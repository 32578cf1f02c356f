import logging

from django.db import DatabaseError, transaction

from .models import Notification

logger = logging.getLogger(__name__)

SESSIONS_LINK = "/dashboard?view=sessions"
REVIEWS_LINK = "/dashboard?view=reviews"
FINANCES_LINK = "/dashboard?view=finances"


def messages_link(user_id):
    return f"/dashboard?view=messages&with={user_id}"


def notify(recipient, type, title, message, sender=None, link=""):
    """Create a notification without letting a failure break the caller.

    Clients poll for these, so a lost row only delays what the user sees.
    """
    try:
        with transaction.atomic():
            return Notification.objects.create(
                recipient=recipient,
                sender=sender,
                type=type,
                title=title,
                message=message,
                link=link,
            )
    except DatabaseError:
        logger.exception("Could not create %s notification for user %s", type, getattr(recipient, "id", recipient))
        return None
