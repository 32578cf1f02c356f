from django.conf import settings
from django.db import models
from django.utils import timezone


class UserProfile(models.Model):
    ROLE_CHOICES = [
        ('candidate', 'Candidate'),
        ('mentor', 'Mentor'),
        ('admin', 'Admin'),
    ]
    PLAN_CHOICES = [
        ('free', 'Free'),
        ('monthly', 'Monthly'),
        ('yearly', 'Yearly'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    name = models.CharField(max_length=150)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='candidate')
    phone = models.CharField(max_length=20, blank=True)
    verified = models.BooleanField(default=False)
    is_mentor_verified = models.BooleanField(default=False)
    student_id_url = models.URLField(max_length=500, blank=True)
    subscription_plan = models.CharField(max_length=10, choices=PLAN_CHOICES, default='free')
    subscription_expires = models.DateTimeField(null=True, blank=True)
    subscribed_mentors = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='subscribed_candidates',
    )
    sessions_used = models.PositiveIntegerField(default=0)
    profile_pic = models.URLField(max_length=500, blank=True)
    bio = models.TextField(blank=True)
    university = models.CharField(max_length=200, blank=True)
    department = models.CharField(max_length=200, blank=True)
    title = models.CharField(max_length=150, default='Admission Candidate')
    reset_password_token = models.CharField(max_length=64, blank=True, db_index=True)
    reset_password_expire = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.user.email} ({self.role})"

    def has_active_subscription(self, now=None) -> bool:
        if self.subscription_plan == 'free' or not self.subscription_expires:
            return False
        return self.subscription_expires > (now or timezone.now())
