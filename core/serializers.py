import re
from decimal import Decimal
from hashlib import sha256

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import (
    Message,
    MentorAvailabilitySlot,
    MentorProfile,
    Notification,
    Payment,
    PlatformSettings,
    Report,
    Review,
    Session,
    Subscription,
    UserProfile,
)


User = get_user_model()

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def hash_token(token: str) -> str:
    return sha256(token.encode("utf-8")).hexdigest()


def ensure_username(base: str) -> str:
    base = (base or "user").strip().lower().replace(" ", "_")
    candidate = base
    index = 1
    while User.objects.filter(username=candidate).exists():
        index += 1
        candidate = f"{base}_{index}"
    return candidate


def build_absolute_media_url(raw_url: str, request=None) -> str:
    value = str(raw_url or "").strip()
    if not value:
        return ""
    if value.startswith("http://") or value.startswith("https://"):
        return value
    if request is not None:
        return request.build_absolute_uri(value)
    public_base = str(getattr(settings, "PUBLIC_BASE_URL", "") or "").strip()
    if public_base:
        return f"{public_base.rstrip('/')}/{value.lstrip('/')}"
    return value


class UserProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    subscribed_mentors = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    has_active_subscription = serializers.SerializerMethodField()

    class Meta:
        model = UserProfile
        fields = [
            "id",
            "name",
            "email",
            "role",
            "phone",
            "verified",
            "is_mentor_verified",
            "student_id_url",
            "subscription_plan",
            "subscription_expires",
            "subscribed_mentors",
            "sessions_used",
            "has_active_subscription",
            "profile_pic",
            "bio",
            "university",
            "department",
            "title",
            "created_at",
        ]
        read_only_fields = fields

    def get_has_active_subscription(self, obj):
        return obj.has_active_subscription()


class PublicUserSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            "id",
            "name",
            "role",
            "profile_pic",
            "bio",
            "university",
            "department",
            "title",
            "is_mentor_verified",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserProfile
        fields = [
            "name",
            "phone",
            "bio",
            "profile_pic",
            "student_id_url",
            "university",
            "department",
            "title",
        ]


def public_user_payload(user):
    profile = getattr(user, "userprofile", None)
    if profile is None:
        return {"id": user.id, "name": user.get_full_name() or user.email, "role": None}
    return PublicUserSerializer(profile).data


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=["candidate", "mentor"], default="candidate")
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    student_id_url = serializers.URLField(required=False, allow_blank=True)
    university = serializers.CharField(max_length=200, required=False, allow_blank=True)
    department = serializers.CharField(max_length=200, required=False, allow_blank=True)
    university_email = serializers.EmailField(required=False, allow_blank=True)

    def validate_email(self, value):
        email = value.strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError("User already exists")
        return email

    def create(self, validated_data):
        email = validated_data["email"]
        role = validated_data.get("role", "candidate")
        with transaction.atomic():
            user = User.objects.create_user(
                username=ensure_username(email.split("@")[0]),
                email=email,
                password=validated_data["password"],
            )
            profile = UserProfile.objects.create(
                user=user,
                name=validated_data["name"].strip(),
                role=role,
                phone=validated_data.get("phone", ""),
                student_id_url=validated_data.get("student_id_url", ""),
                university=validated_data.get("university", ""),
                department=validated_data.get("department", ""),
                title="Mentor" if role == "mentor" else "Admission Candidate",
            )
            if role == "mentor":
                MentorProfile.objects.create(
                    user=user,
                    university=validated_data.get("university") or "Unknown",
                    department=validated_data.get("department") or "Unknown",
                    university_email=validated_data.get("university_email", ""),
                )
        return profile

    def to_representation(self, instance):
        return UserProfileSerializer(instance, context=self.context).data


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, min_length=6)


class MentorAvailabilitySlotSerializer(serializers.ModelSerializer):
    class Meta:
        model = MentorAvailabilitySlot
        fields = ["id", "day", "start_time", "end_time"]

    def validate(self, attrs):
        start = attrs.get("start_time", "")
        end = attrs.get("end_time", "")
        if not TIME_PATTERN.match(start) or not TIME_PATTERN.match(end):
            raise serializers.ValidationError("Times must use the HH:MM 24-hour format.")
        if end <= start:
            raise serializers.ValidationError({"end_time": "end_time must be after start_time."})
        return attrs


class MentorAvailabilitySlotWriteSerializer(MentorAvailabilitySlotSerializer):
    id = serializers.IntegerField(required=False)


class MentorProfileSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()
    availability = MentorAvailabilitySlotSerializer(source="availability_slots", many=True, read_only=True)

    class Meta:
        model = MentorProfile
        fields = [
            "id",
            "user",
            "university",
            "university_email",
            "department",
            "bio",
            "expertise",
            "hourly_rate",
            "rating",
            "reviews_count",
            "meeting_link",
            "payment_methods",
            "payment_number",
            "availability",
            "created_at",
        ]
        read_only_fields = fields

    def get_user(self, obj):
        return public_user_payload(obj.user)


class MentorOwnProfileSerializer(MentorProfileSerializer):
    class Meta(MentorProfileSerializer.Meta):
        fields = MentorProfileSerializer.Meta.fields + ["earnings", "wallet_balance"]
        read_only_fields = fields


class MentorProfileUpdateSerializer(serializers.ModelSerializer):
    availability = MentorAvailabilitySlotWriteSerializer(many=True, required=False)
    student_id_url = serializers.URLField(required=False, allow_blank=True)
    profile_pic = serializers.URLField(required=False, allow_blank=True)
    user_bio = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = MentorProfile
        fields = [
            "university",
            "university_email",
            "department",
            "bio",
            "expertise",
            "hourly_rate",
            "meeting_link",
            "payment_methods",
            "payment_number",
            "availability",
            "student_id_url",
            "profile_pic",
            "user_bio",
        ]

    def validate_hourly_rate(self, value):
        if value < 0:
            raise serializers.ValidationError("Hourly rate cannot be negative.")
        return value

    def validate_expertise(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Expertise must be a list.")
        return [str(item).strip() for item in value if str(item).strip()]

    def validate_payment_methods(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Payment methods must be a list.")
        return value

    def update(self, instance, validated_data):
        slots = validated_data.pop("availability", None)
        user_updates = {}
        for field, target in (
            ("student_id_url", "student_id_url"),
            ("profile_pic", "profile_pic"),
            ("user_bio", "bio"),
        ):
            if field in validated_data:
                user_updates[target] = validated_data.pop(field)

        previous_link = instance.meeting_link
        with transaction.atomic():
            instance = super().update(instance, validated_data)
            if slots is not None:
                self._sync_availability(instance, slots)
            if instance.meeting_link != previous_link:
                Session.objects.filter(
                    mentor=instance.user,
                    status__in=["accepted", "approved"],
                ).update(meeting_link=instance.meeting_link)
            if user_updates:
                UserProfile.objects.filter(user=instance.user).update(**user_updates)
        return instance

    def _sync_availability(self, instance, slots):
        """Update submitted slots in place, create new ones and drop the rest.

        Slots keep their ids across edits so booked sessions stay linked to them.
        """
        existing = {slot.id: slot for slot in instance.availability_slots.all()}
        kept_ids = set()
        new_slots = []
        for slot_data in slots:
            slot_id = slot_data.pop("id", None)
            if slot_id is None:
                new_slots.append(MentorAvailabilitySlot(mentor_profile=instance, **slot_data))
                continue
            slot = existing.get(slot_id)
            if slot is None:
                raise serializers.ValidationError({"availability": f"Unknown availability slot {slot_id}."})
            for field, value in slot_data.items():
                setattr(slot, field, value)
            slot.save(update_fields=list(slot_data.keys()))
            kept_ids.add(slot_id)

        instance.availability_slots.exclude(id__in=kept_ids).delete()
        MentorAvailabilitySlot.objects.bulk_create(new_slots)


class SessionSerializer(serializers.ModelSerializer):
    mentor = serializers.SerializerMethodField()
    candidate = serializers.SerializerMethodField()
    mentor_profile_id = serializers.SerializerMethodField()
    slot_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Session
        fields = [
            "id",
            "mentor",
            "candidate",
            "mentor_profile_id",
            "start_time",
            "duration",
            "status",
            "payment_status",
            "amount",
            "meeting_link",
            "notes",
            "slot_id",
            "is_subscription",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_mentor(self, obj):
        return public_user_payload(obj.mentor)

    def get_candidate(self, obj):
        return public_user_payload(obj.candidate)

    def get_mentor_profile_id(self, obj):
        profile = getattr(obj.mentor, "mentor_profile", None)
        return profile.id if profile else None


class BookingSerializer(serializers.Serializer):
    mentor = serializers.IntegerField()
    start_time = serializers.DateTimeField()
    duration = serializers.IntegerField(min_value=15, max_value=240, default=60)
    notes = serializers.CharField(allow_blank=True, default="")
    slot_id = serializers.IntegerField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=["bkash", "nagad"], required=False, allow_blank=True)
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=Decimal("0.00")
    )


class SessionStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[choice for choice, _ in Session.STATUS_CHOICES])


class PaymentSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()
    mentor = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = "__all__"

    def get_user(self, obj):
        return public_user_payload(obj.user)

    def get_mentor(self, obj):
        return public_user_payload(obj.mentor) if obj.mentor_id else None


class SubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subscription
        fields = ["id", "plan", "start_date", "end_date", "is_active", "payment"]


class SubscriptionPurchaseSerializer(serializers.Serializer):
    plan = serializers.CharField()
    payment_method = serializers.ChoiceField(choices=["bkash", "nagad"], default="bkash")
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)


class MentorSelectionSerializer(serializers.Serializer):
    mentor_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class PayoutSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.01"))
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)


class PlatformSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlatformSettings
        exclude = ["id"]
        read_only_fields = ["updated_at"]

    def validate_commission_rate(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("Commission rate must be between 0 and 100.")
        return value


class NotificationSerializer(serializers.ModelSerializer):
    sender = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = ["id", "sender", "type", "title", "message", "link", "is_read", "created_at"]
        read_only_fields = fields

    def get_sender(self, obj):
        return public_user_payload(obj.sender) if obj.sender_id else None


class ReviewSerializer(serializers.ModelSerializer):
    candidate = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = ["id", "mentor", "candidate", "rating", "comment", "session", "created_at", "updated_at"]
        read_only_fields = ["id", "candidate", "created_at", "updated_at"]
        extra_kwargs = {
            "session": {"required": False, "allow_null": True},
        }

    def get_candidate(self, obj):
        return public_user_payload(obj.candidate)

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value

    def validate_mentor(self, value):
        if not MentorProfile.objects.filter(user=value).exists():
            raise serializers.ValidationError("Mentor not found.")
        return value


class ReviewUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = ["rating", "comment"]

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ["id", "sender", "receiver", "content", "is_read", "created_at"]
        read_only_fields = ["id", "sender", "is_read", "created_at"]

    def validate_content(self, value):
        content = value.strip()
        if not content:
            raise serializers.ValidationError("Message content is required.")
        return content


class ReportSerializer(serializers.ModelSerializer):
    reporter = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Report
        fields = ["id", "reporter", "reported_user", "reason", "details", "status", "created_at"]
        read_only_fields = ["id", "reporter", "status", "created_at"]


class ReportStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = Report
        fields = ["status"]
