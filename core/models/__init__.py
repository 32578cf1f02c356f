from .chat import Message
from .mentor import MentorAvailabilitySlot, MentorProfile
from .mentor_finance import Payment, Subscription
from .notification import Notification
from .platform_settings import PlatformSettings
from .report import Report
from .review import Review
from .session import Session
from .user_profile import UserProfile

__all__ = [
    'Message',
    'MentorAvailabilitySlot',
    'MentorProfile',
    'Payment',
    'Subscription',
    'Notification',
    'PlatformSettings',
    'Report',
    'Review',
    'Session',
    'UserProfile',
]
