from decimal import Decimal

from django.conf import settings
from django.db import models


class MentorProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="mentor_profile"
    )
    university = models.CharField(max_length=200)
    university_email = models.EmailField(blank=True)
    department = models.CharField(max_length=200)
    bio = models.TextField(blank=True)
    expertise = models.JSONField(default=list, blank=True)
    hourly_rate = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    rating = models.DecimalField(max_digits=3, decimal_places=1, default=Decimal("0.0"))
    reviews_count = models.PositiveIntegerField(default=0)
    earnings = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    wallet_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    meeting_link = models.URLField(max_length=500, blank=True)
    payment_methods = models.JSONField(default=list, blank=True)
    payment_number = models.CharField(max_length=30, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"Mentor profile for user {self.user_id}"


class MentorAvailabilitySlot(models.Model):
    DAY_CHOICES = [
        ("Saturday", "Saturday"),
        ("Sunday", "Sunday"),
        ("Monday", "Monday"),
        ("Tuesday", "Tuesday"),
        ("Wednesday", "Wednesday"),
        ("Thursday", "Thursday"),
        ("Friday", "Friday"),
    ]

    mentor_profile = models.ForeignKey(
        MentorProfile, on_delete=models.CASCADE, related_name="availability_slots"
    )
    day = models.CharField(max_length=10, choices=DAY_CHOICES)
    start_time = models.CharField(max_length=5)
    end_time = models.CharField(max_length=5)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.day} {self.start_time}-{self.end_time} ({self.mentor_profile_id})"
