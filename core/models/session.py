from decimal import Decimal

from django.conf import settings
from django.db import models

from .mentor import MentorAvailabilitySlot


class Session(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("accepted", "Accepted"),
        ("approved", "Approved"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    ]
    PAYMENT_STATUS_CHOICES = [
        ("unpaid", "Unpaid"),
        ("paid", "Paid"),
        ("refunded", "Refunded"),
    ]
    ACTIVE_STATUSES = ("pending", "accepted", "approved", "completed")
    UPCOMING_STATUSES = ("pending", "accepted", "approved")

    mentor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="hosted_sessions"
    )
    candidate = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="booked_sessions"
    )
    start_time = models.DateTimeField()
    duration = models.PositiveIntegerField(default=60)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    payment_status = models.CharField(
        max_length=20, choices=PAYMENT_STATUS_CHOICES, default="unpaid"
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    meeting_link = models.URLField(max_length=500, blank=True)
    notes = models.TextField(blank=True)
    slot = models.ForeignKey(
        MentorAvailabilitySlot,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sessions",
    )
    is_subscription = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        ordering = ["-start_time", "-id"]
        indexes = [
            models.Index(fields=["mentor", "start_time"], name="session_mentor_start_idx"),
        ]

    def __str__(self) -> str:
        return f"Session {self.id} ({self.status}) mentor {self.mentor_id}"
