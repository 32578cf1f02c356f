import logging
import os
import secrets
from datetime import timedelta
from smtplib import SMTPException
from uuid import uuid4

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.generics import GenericAPIView
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .auth import build_auth_response
from .booking import book_session, display_name, update_session_status
from .exceptions import EmailDeliveryFailed
from .models import (
    Message,
    MentorProfile,
    Notification,
    Payment,
    PlatformSettings,
    Report,
    Review,
    Session,
    UserProfile,
)
from .notifications import REVIEWS_LINK, messages_link, notify
from .permissions import (
    ROLE_ADMIN,
    ROLE_CANDIDATE,
    ROLE_MENTOR,
    IsAdminRole,
    IsAuthenticatedWithAppRole,
    IsCandidateRole,
    IsMentorRole,
    user_role,
)
from .serializers import (
    BookingSerializer,
    ForgotPasswordSerializer,
    MentorOwnProfileSerializer,
    MentorProfileSerializer,
    MentorProfileUpdateSerializer,
    MentorSelectionSerializer,
    MessageSerializer,
    NotificationSerializer,
    PaymentSerializer,
    PayoutSerializer,
    PlatformSettingsSerializer,
    ProfileUpdateSerializer,
    PublicUserSerializer,
    RegisterSerializer,
    ReportSerializer,
    ReportStatusSerializer,
    ResetPasswordSerializer,
    ReviewSerializer,
    ReviewUpdateSerializer,
    SessionSerializer,
    SessionStatusSerializer,
    SubscriptionPurchaseSerializer,
    SubscriptionSerializer,
    UserProfileSerializer,
    build_absolute_media_url,
    hash_token,
)
from .subscriptions import purchase_subscription, select_mentors
from .wallet import ZERO, settle_payout

logger = logging.getLogger(__name__)

User = get_user_model()

LIST_LIMIT = 50
CHAT_ROLES = {ROLE_CANDIDATE, ROLE_MENTOR}


def current_profile(request):
    profile = UserProfile.objects.filter(user=request.user).first()
    if profile is None:
        raise NotFound("User profile not found.")
    return profile


def resync_mentor_rating(mentor_user_id):
    summary = Review.objects.filter(mentor_id=mentor_user_id).aggregate(
        average=Avg("rating"),
        total=Count("id"),
    )
    average = summary["average"]
    MentorProfile.objects.filter(user_id=mentor_user_id).update(
        rating=round(average, 1) if average is not None else 0,
        reviews_count=summary["total"],
    )


# Auth


class RegisterView(GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = RegisterSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = serializer.save()
        logger.info("Registered %s user %s", profile.role, profile.user_id)
        return Response(
            build_auth_response(profile.user, context={"request": request}),
            status=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def get(self, request):
        profile = current_profile(request)
        return Response(UserProfileSerializer(profile, context={"request": request}).data)


class ProfileUpdateView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def put(self, request):
        return self._update(request, partial=False)

    def patch(self, request):
        return self._update(request, partial=True)

    def _update(self, request, partial):
        profile = current_profile(request)
        serializer = ProfileUpdateSerializer(profile, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(UserProfileSerializer(profile, context={"request": request}).data)


class UserDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        profile = UserProfile.objects.filter(user_id=user_id).first()
        if profile is None:
            raise NotFound("User not found")
        return Response(PublicUserSerializer(profile).data)


class ForgotPasswordView(GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = ForgotPasswordSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"].strip().lower()
        profile = UserProfile.objects.select_related("user").filter(user__email__iexact=email).first()
        if profile is None:
            raise NotFound("There is no user with that email")

        token = secrets.token_hex(20)
        profile.reset_password_token = hash_token(token)
        profile.reset_password_expire = timezone.now() + timedelta(
            minutes=settings.PASSWORD_RESET_EXPIRY_MINUTES
        )
        profile.save(update_fields=["reset_password_token", "reset_password_expire", "updated_at"])

        reset_url = f"{settings.CLIENT_URL}/reset-password/{token}"
        message = (
            "You are receiving this email because you (or someone else) requested "
            "a password reset for your SopnoSetu account.\n\n"
            f"Open the following link to choose a new password:\n{reset_url}\n\n"
            f"The link expires in {settings.PASSWORD_RESET_EXPIRY_MINUTES} minutes."
        )
        try:
            send_mail(
                "SopnoSetu Password Reset Token",
                message,
                None,
                [profile.user.email],
            )
        except (SMTPException, OSError):
            logger.exception("Password reset email to user %s failed", profile.user_id)
            profile.reset_password_token = ""
            profile.reset_password_expire = None
            profile.save(update_fields=["reset_password_token", "reset_password_expire", "updated_at"])
            raise EmailDeliveryFailed()

        return Response({"detail": "Email sent"})


class ResetPasswordView(GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = ResetPasswordSerializer

    def put(self, request, token):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = (
            UserProfile.objects.select_related("user")
            .filter(
                reset_password_token=hash_token(token),
                reset_password_expire__gt=timezone.now(),
            )
            .first()
        )
        if profile is None:
            return Response({"detail": "Invalid token"}, status=status.HTTP_400_BAD_REQUEST)

        user = profile.user
        user.set_password(serializer.validated_data["password"])
        user.save(update_fields=["password"])
        profile.reset_password_token = ""
        profile.reset_password_expire = None
        profile.save(update_fields=["reset_password_token", "reset_password_expire", "updated_at"])
        return Response(build_auth_response(user, context={"request": request}))


class LogoutView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def post(self, request):
        return Response({"detail": "Logout acknowledged on server."})


# Mentors


class MentorViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = MentorProfile.objects.select_related("user__userprofile").prefetch_related("availability_slots")
    serializer_class = MentorProfileSerializer
    permission_classes = [AllowAny]

    def get_permissions(self):
        if self.action == "me":
            return [IsMentorRole()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != "list":
            return queryset
        queryset = queryset.filter(user__userprofile__is_mentor_verified=True)
        keyword = (self.request.query_params.get("keyword") or "").strip()
        if keyword:
            queryset = queryset.filter(
                Q(university__icontains=keyword) | Q(department__icontains=keyword)
            )
        return queryset

    def get_object(self):
        lookup = self.kwargs.get(self.lookup_field)
        if not str(lookup).isdigit():
            raise NotFound("Mentor not found")
        mentor = self.get_queryset().filter(pk=lookup).first()
        if mentor is None:
            raise NotFound("Mentor not found")
        return mentor

    def retrieve(self, request, *args, **kwargs):
        return self._detail_response(self.get_object())

    @action(detail=False, methods=["get"], url_path=r"by-user/(?P<user_id>\d+)")
    def by_user(self, request, user_id=None):
        # Profile ids and user ids overlap; never fall back from one to the other.
        mentor = self.get_queryset().filter(user_id=user_id).first()
        if mentor is None:
            raise NotFound("Mentor not found")
        return self._detail_response(mentor)

    def _detail_response(self, mentor):
        data = self.get_serializer(mentor).data
        reviews = Review.objects.filter(mentor=mentor.user).select_related("candidate__userprofile")[:5]
        data["reviews"] = ReviewSerializer(reviews, many=True).data
        upcoming = Session.objects.filter(
            mentor=mentor.user,
            start_time__gte=timezone.now(),
            status__in=Session.UPCOMING_STATUSES,
        ).order_by("start_time")
        data["upcoming_sessions"] = [
            {
                "start_time": session.start_time,
                "duration": session.duration,
                "status": session.status,
            }
            for session in upcoming
        ]
        return Response(data)

    @action(detail=False, methods=["get", "put", "patch"], url_path="me")
    def me(self, request):
        mentor = MentorProfile.objects.filter(user=request.user).first()
        if mentor is None:
            raise NotFound("Mentor profile not found")
        if request.method in ["PUT", "PATCH"]:
            serializer = MentorProfileUpdateSerializer(mentor, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            mentor = serializer.save()
            mentor.refresh_from_db()
        return Response(MentorOwnProfileSerializer(mentor).data)


# Sessions


class SessionViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Session.objects.all().select_related(
        "mentor__userprofile",
        "mentor__mentor_profile",
        "candidate__userprofile",
    )
    serializer_class = SessionSerializer
    permission_classes = [IsAuthenticatedWithAppRole]

    def get_serializer_class(self):
        if self.action == "create":
            return BookingSerializer
        if self.action in {"update", "partial_update"}:
            return SessionStatusSerializer
        return SessionSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        role = user_role(self.request.user)
        if role == ROLE_MENTOR:
            queryset = queryset.filter(mentor=self.request.user)
        elif role == ROLE_CANDIDATE:
            queryset = queryset.filter(candidate=self.request.user)
        elif role != ROLE_ADMIN:
            queryset = queryset.none()
        status_value = self.request.query_params.get("status")
        if status_value:
            queryset = queryset.filter(status=status_value)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = book_session(request.user, serializer.validated_data, PlatformSettings.load())
        return Response(SessionSerializer(session).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        session = Session.objects.filter(pk=kwargs.get("pk")).select_related("candidate").first()
        if session is None:
            raise NotFound("Session not found")
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = update_session_status(session, request.user, serializer.validated_data["status"])
        return Response(SessionSerializer(session).data)


# Subscriptions


class SubscriptionPurchaseView(GenericAPIView):
    permission_classes = [IsCandidateRole]
    serializer_class = SubscriptionPurchaseSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        purchase_subscription(
            request.user,
            serializer.validated_data["plan"],
            PlatformSettings.load(),
            payment_method=serializer.validated_data.get("payment_method"),
            transaction_id=serializer.validated_data.get("transaction_id", ""),
        )
        profile = current_profile(request)
        return Response(UserProfileSerializer(profile).data, status=status.HTTP_201_CREATED)


class MentorSelectionView(GenericAPIView):
    permission_classes = [IsCandidateRole]
    serializer_class = MentorSelectionSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        select_mentors(request.user, serializer.validated_data["mentor_ids"], PlatformSettings.load())
        profile = current_profile(request)
        return Response(UserProfileSerializer(profile).data)


class SubscriptionHistoryView(APIView):
    permission_classes = [IsCandidateRole]

    def get(self, request):
        subscriptions = request.user.subscriptions.all()
        return Response(SubscriptionSerializer(subscriptions, many=True).data)


# Admin


class AdminUserListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        queryset = UserProfile.objects.select_related("user").order_by("-created_at")
        role = request.query_params.get("role")
        if role:
            queryset = queryset.filter(role=role)
        return Response(UserProfileSerializer(queryset, many=True).data)


class MentorApplicationListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        applicants = (
            UserProfile.objects.select_related("user", "user__mentor_profile")
            .filter(role=ROLE_MENTOR, is_mentor_verified=False)
            .order_by("-created_at")
        )
        payload = []
        for profile in applicants:
            mentor_profile = getattr(profile.user, "mentor_profile", None)
            payload.append(
                {
                    "user": UserProfileSerializer(profile).data,
                    "mentor_profile": MentorProfileSerializer(mentor_profile).data if mentor_profile else None,
                }
            )
        return Response(payload)


class MentorVerificationView(APIView):
    permission_classes = [IsAdminRole]
    verified = True

    def put(self, request, user_id):
        profile = UserProfile.objects.filter(user_id=user_id).first()
        if profile is None:
            raise NotFound("User not found")
        if profile.role != ROLE_MENTOR:
            raise ValidationError({"detail": "Only mentor accounts can be verified."})
        profile.is_mentor_verified = self.verified
        profile.save(update_fields=["is_mentor_verified", "updated_at"])
        if self.verified:
            notify(
                profile.user,
                "system",
                "Mentor Profile Verified",
                "Your mentor profile has been verified. Students can now book sessions with you.",
                sender=request.user,
            )
        return Response(UserProfileSerializer(profile).data)


class MentorUnverifyView(MentorVerificationView):
    verified = False


class MentorDeclineView(APIView):
    permission_classes = [IsAdminRole]

    def delete(self, request, user_id):
        profile = UserProfile.objects.filter(user_id=user_id).first()
        if profile is None:
            raise NotFound("User not found")
        with transaction.atomic():
            MentorProfile.objects.filter(user_id=user_id).delete()
            profile.role = ROLE_CANDIDATE
            profile.is_mentor_verified = False
            profile.save(update_fields=["role", "is_mentor_verified", "updated_at"])
        logger.info("Mentor application for user %s declined by %s", user_id, request.user.id)
        return Response({"detail": "Mentor application declined"})


class AdminStatsView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        revenue = Payment.objects.filter(
            status="completed",
            type__in=["session_booking", "subscription"],
        ).aggregate(
            total_revenue=Sum("amount"),
            total_commission=Sum("admin_commission"),
        )
        payouts = Payment.objects.filter(type="payout", status="completed").aggregate(
            total=Sum("amount"),
            count=Count("id"),
        )
        pending = MentorProfile.objects.aggregate(total=Sum("wallet_balance"))
        return Response(
            {
                "total_revenue": revenue["total_revenue"] or ZERO,
                "total_commission": revenue["total_commission"] or ZERO,
                "total_mentor_payout": payouts["total"] or ZERO,
                "payout_count": payouts["count"],
                "transaction_count": Payment.objects.count(),
                "total_pending_balance": pending["total"] or ZERO,
            }
        )


class AdminTransactionListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        payments = Payment.objects.select_related("user__userprofile", "mentor__userprofile")[:LIST_LIMIT]
        return Response(PaymentSerializer(payments, many=True).data)


class AdminPayoutView(GenericAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = PayoutSerializer

    def post(self, request, user_id):
        mentor_user = get_object_or_404(User, pk=user_id)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile, payment = settle_payout(
            mentor_user,
            serializer.validated_data["amount"],
            transaction_id=serializer.validated_data.get("transaction_id", ""),
            processed_by=request.user,
        )
        return Response(
            {
                "detail": "Payout processed successfully",
                "current_balance": profile.wallet_balance,
                "payment": PaymentSerializer(payment).data,
            }
        )


class PlatformSettingsView(APIView):
    permission_classes = [IsAdminRole]

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return super().get_permissions()

    def get(self, request):
        return Response(PlatformSettingsSerializer(PlatformSettings.load()).data)

    def put(self, request):
        return self._update(request)

    def patch(self, request):
        return self._update(request)

    def _update(self, request):
        serializer = PlatformSettingsSerializer(PlatformSettings.load(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        platform_settings = serializer.save()
        logger.info("Platform settings updated by admin %s", request.user.id)
        return Response(PlatformSettingsSerializer(platform_settings).data)


class ReportViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Report.objects.all().select_related("reporter", "reported_user")
    serializer_class = ReportSerializer
    permission_classes = [IsAdminRole]

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticatedWithAppRole()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action in {"update", "partial_update"}:
            return ReportStatusSerializer
        return ReportSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        status_value = self.request.query_params.get("status")
        if status_value:
            queryset = queryset.filter(status=status_value)
        return queryset

    def perform_create(self, serializer):
        if serializer.validated_data["reported_user"] == self.request.user:
            raise ValidationError({"detail": "You cannot report yourself."})
        serializer.save(reporter=self.request.user)


# Chat


class ChatSendView(GenericAPIView):
    permission_classes = [IsAuthenticatedWithAppRole]
    serializer_class = MessageSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        receiver = serializer.validated_data["receiver"]
        sender_role = user_role(request.user)
        receiver_role = user_role(receiver)
        if {sender_role, receiver_role} != CHAT_ROLES:
            raise PermissionDenied("Chat is only available between students and mentors.")

        message = serializer.save(sender=request.user)
        preview = message.content[:30]
        if len(message.content) > 30:
            preview += "..."
        notify(
            receiver,
            "new_message",
            f"New message from {display_name(request.user)}",
            preview,
            sender=request.user,
            link=messages_link(request.user.id),
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class ChatHistoryView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def get(self, request, user_id):
        messages = Message.objects.filter(
            Q(sender=request.user, receiver_id=user_id) | Q(sender_id=user_id, receiver=request.user)
        ).order_by("created_at", "id")
        return Response(MessageSerializer(messages, many=True).data)


class ChatPartnersView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def get(self, request):
        me = request.user
        messages = Message.objects.filter(Q(sender=me) | Q(receiver=me))
        partners = {}
        for message in messages.order_by("-created_at", "-id"):
            partner_id = message.receiver_id if message.sender_id == me.id else message.sender_id
            if partner_id not in partners:
                partners[partner_id] = {
                    "last_message": message.content,
                    "last_message_time": message.created_at,
                    "unread_count": 0,
                }
        unread = (
            messages.filter(receiver=me, is_read=False)
            .values("sender_id")
            .annotate(total=Count("id"))
        )
        for row in unread:
            if row["sender_id"] in partners:
                partners[row["sender_id"]]["unread_count"] = row["total"]

        profiles = {
            profile.user_id: profile
            for profile in UserProfile.objects.filter(user_id__in=partners.keys())
        }
        payload = []
        for partner_id, summary in partners.items():
            profile = profiles.get(partner_id)
            if profile is None:
                continue
            payload.append({"user": PublicUserSerializer(profile).data, **summary})
        return Response(payload)


class ChatMarkReadView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def put(self, request, user_id):
        updated = Message.objects.filter(
            sender_id=user_id, receiver=request.user, is_read=False
        ).update(is_read=True)
        return Response({"detail": "Messages marked as read", "updated": updated})


class ChatUnreadCountView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]

    def get(self, request):
        count = Message.objects.filter(receiver=request.user, is_read=False).count()
        return Response({"count": count})


# Notifications


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticatedWithAppRole]

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user).select_related("sender__userprofile")

    def list(self, request, *args, **kwargs):
        notifications = self.get_queryset()[:LIST_LIMIT]
        return Response(self.get_serializer(notifications, many=True).data)

    @action(detail=True, methods=["put"], url_path="read")
    def read(self, request, pk=None):
        notification = Notification.objects.filter(pk=pk).first()
        if notification is None:
            raise NotFound("Notification not found")
        if notification.recipient_id != request.user.id:
            raise PermissionDenied("You can only update your own notifications.")
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return Response(self.get_serializer(notification).data)

    @action(detail=False, methods=["put"], url_path="read-all")
    def read_all(self, request):
        updated = self.get_queryset().filter(is_read=False).update(is_read=True)
        return Response({"detail": "All notifications marked as read", "updated": updated})

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return Response({"count": self.get_queryset().filter(is_read=False).count()})


# Reviews


class ReviewViewSet(
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Review.objects.all().select_related("candidate__userprofile")
    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticatedWithAppRole]

    def get_permissions(self):
        if self.action == "create":
            return [IsCandidateRole()]
        if self.action == "mentor_reviews":
            return [AllowAny()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action in {"update", "partial_update"}:
            return ReviewUpdateSerializer
        return ReviewSerializer

    def get_object(self):
        review = get_object_or_404(Review, pk=self.kwargs.get("pk"))
        if review.candidate_id != self.request.user.id:
            raise PermissionDenied("You can only change your own reviews.")
        return review

    def perform_create(self, serializer):
        mentor = serializer.validated_data["mentor"]
        session = serializer.validated_data.get("session")
        if session is not None:
            if session.candidate_id != self.request.user.id:
                raise PermissionDenied("You can only review your own sessions.")
            if session.mentor_id != mentor.id:
                raise ValidationError({"detail": "This session was hosted by a different mentor."})
            if session.status != "completed":
                raise ValidationError({"detail": "You can only review completed sessions."})
            if Review.objects.filter(session=session).exists():
                raise ValidationError({"detail": "This session has already been reviewed."})

        review = serializer.save(candidate=self.request.user)
        resync_mentor_rating(mentor.id)
        notify(
            mentor,
            "review_received",
            "New Review Received",
            f"{display_name(self.request.user)} rated you {review.rating}/5.",
            sender=self.request.user,
            link=REVIEWS_LINK,
        )

    def perform_update(self, serializer):
        review = serializer.save()
        resync_mentor_rating(review.mentor_id)

    def perform_destroy(self, instance):
        mentor_id = instance.mentor_id
        instance.delete()
        resync_mentor_rating(mentor_id)

    def update(self, request, *args, **kwargs):
        super().update(request, *args, **kwargs)
        review = Review.objects.select_related("candidate__userprofile").get(pk=kwargs["pk"])
        return Response(ReviewSerializer(review).data)

    @action(detail=False, methods=["get"], url_path=r"mentor/(?P<mentor_id>\d+)")
    def mentor_reviews(self, request, mentor_id=None):
        reviews = self.get_queryset().filter(mentor_id=mentor_id)
        return Response(ReviewSerializer(reviews, many=True).data)

    @action(detail=False, methods=["get"], url_path="my-reviews")
    def my_reviews(self, request):
        reviews = self.get_queryset().filter(candidate=request.user)
        return Response(ReviewSerializer(reviews, many=True).data)


# Uploads


class UploadView(APIView):
    permission_classes = [IsAuthenticatedWithAppRole]
    parser_classes = [MultiPartParser, FormParser]
    upload_prefix = "uploads"

    def post(self, request):
        upload = request.FILES.get("file")
        if upload is None:
            raise ValidationError({"detail": "No file uploaded"})
        extension = os.path.splitext(upload.name)[1].lower()
        if extension not in settings.UPLOAD_ALLOWED_EXTENSIONS:
            raise ValidationError({"detail": "Only jpg, jpeg, png and pdf files are allowed."})
        if upload.size > settings.UPLOAD_MAX_BYTES:
            raise ValidationError({"detail": "File is too large."})

        name = default_storage.save(f"{self.upload_prefix}/{uuid4().hex}{extension}", upload)
        url = build_absolute_media_url(default_storage.url(name), request=request)
        return Response({"url": url}, status=status.HTTP_201_CREATED)


class PublicUploadView(UploadView):
    permission_classes = [AllowAny]
    upload_prefix = "uploads/public"
