import re
from datetime import datetime, timedelta
from decimal import Decimal
from io import StringIO
from smtplib import SMTPException
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient, APITestCase

from core.models import (
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
from core.subscriptions import plan_expiry
from core.wallet import split_commission, sync_wallet_balance


def create_account(email, role, password="StrongPass123", **profile_fields):
    User = get_user_model()
    user = User.objects.create_user(username=email, email=email, password=password)
    profile_fields.setdefault("name", email.split("@")[0].title())
    UserProfile.objects.create(user=user, role=role, **profile_fields)
    return user


def create_mentor(email, verified=True, **mentor_fields):
    user = create_account(email, "mentor", is_mentor_verified=verified)
    mentor_fields.setdefault("university", "Dhaka University")
    mentor_fields.setdefault("department", "Computer Science")
    mentor_profile = MentorProfile.objects.create(user=user, **mentor_fields)
    slot = MentorAvailabilitySlot.objects.create(
        mentor_profile=mentor_profile,
        day="Friday",
        start_time="10:00",
        end_time="12:00",
    )
    return user, mentor_profile, slot


def next_start_time(days=2, hour=10):
    return (timezone.now() + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)


def give_active_plan(user, plan="monthly", mentors=(), sessions_used=0):
    profile = user.userprofile
    profile.subscription_plan = plan
    profile.subscription_expires = timezone.now() + timedelta(days=20)
    profile.sessions_used = sessions_used
    profile.save()
    profile.subscribed_mentors.set(mentors)
    return profile


class CommissionSplitTests(TestCase):
    def test_split_uses_commission_rate_and_adds_back_up(self):
        mentor_amount, admin_commission = split_commission(Decimal("500.00"), Decimal("20"))
        self.assertEqual(admin_commission, Decimal("100.00"))
        self.assertEqual(mentor_amount, Decimal("400.00"))

    def test_split_rounds_commission_to_the_cent(self):
        mentor_amount, admin_commission = split_commission("333.33", Decimal("15"))
        self.assertEqual(admin_commission, Decimal("50.00"))
        self.assertEqual(mentor_amount + admin_commission, Decimal("333.33"))

    def test_plan_expiry_clamps_to_month_end(self):
        start = timezone.make_aware(datetime(2025, 1, 31, 9, 30))
        self.assertEqual(plan_expiry(start, "monthly").date().isoformat(), "2025-02-28")
        self.assertEqual(plan_expiry(start, "yearly").date().isoformat(), "2026-01-31")
        self.assertEqual(plan_expiry(start, "monthly").time(), start.time())


class SessionBookingTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate", name="Karim Ahmed")
        cls.other_candidate = create_account("nadia@test.com", "candidate")
        cls.mentor, cls.mentor_profile, cls.slot = create_mentor(
            "arafat@test.com",
            meeting_link="https://meet.example.com/arafat",
        )
        PlatformSettings.objects.create(commission_rate=Decimal("20.00"))

    def _booking_payload(self, **overrides):
        payload = {
            "mentor": self.mentor.id,
            "start_time": next_start_time().isoformat(),
            "slot_id": self.slot.id,
            "payment_method": "bkash",
            "transaction_id": "TXN-1001",
            "amount": "500.00",
        }
        payload.update(overrides)
        return payload

    def test_paid_booking_credits_mentor_share_immediately(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post("/api/sessions/", self._booking_payload(), format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["payment_status"], "paid")
        self.assertFalse(response.data["is_subscription"])
        self.assertEqual(response.data["slot_id"], self.slot.id)

        payment = Payment.objects.get(type="session_booking", mentor=self.mentor)
        self.assertEqual(payment.amount, Decimal("500.00"))
        self.assertEqual(payment.admin_commission, Decimal("100.00"))
        self.assertEqual(payment.mentor_amount, Decimal("400.00"))
        self.assertEqual(payment.transaction_id, "TXN-1001")
        self.assertEqual(payment.status, "completed")

        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("400.00"))
        self.assertEqual(self.mentor_profile.earnings, Decimal("400.00"))

        notification = Notification.objects.get(recipient=self.mentor)
        self.assertEqual(notification.type, "session_request")
        self.assertEqual(notification.title, "New Session Request")
        self.assertEqual(notification.sender, self.candidate)

    def test_same_mentor_and_start_time_cannot_be_booked_twice(self):
        self.client.force_authenticate(user=self.candidate)
        first = self.client.post("/api/sessions/", self._booking_payload(), format="json")
        self.assertEqual(first.status_code, 201, first.data)

        self.client.force_authenticate(user=self.other_candidate)
        second = self.client.post(
            "/api/sessions/",
            self._booking_payload(transaction_id="TXN-1002"),
            format="json",
        )

        self.assertEqual(second.status_code, 400, second.data)
        self.assertEqual(
            second.data["detail"],
            "This time slot is already booked. Please choose another slot.",
        )
        self.assertEqual(Session.objects.filter(mentor=self.mentor).count(), 1)
        self.assertEqual(Payment.objects.filter(type="session_booking").count(), 1)
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("400.00"))

    def test_cancelled_session_frees_the_time(self):
        Session.objects.create(
            mentor=self.mentor,
            candidate=self.other_candidate,
            start_time=next_start_time(),
            status="cancelled",
            slot=self.slot,
        )
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post("/api/sessions/", self._booking_payload(), format="json")
        self.assertEqual(response.status_code, 201, response.data)

    def test_mentor_cannot_book_sessions(self):
        self.client.force_authenticate(user=self.mentor)
        response = self.client.post("/api/sessions/", self._booking_payload(), format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Session.objects.count(), 0)

    def test_unknown_mentor_returns_404(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/sessions/",
            self._booking_payload(mentor=self.candidate.id),
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_paid_booking_requires_transaction_id_and_amount(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/sessions/",
            self._booking_payload(transaction_id="", amount=None),
            format="json",
        )
        self.assertEqual(response.status_code, 400, response.data)
        self.assertEqual(Session.objects.count(), 0)

    def test_slot_must_belong_to_the_mentor(self):
        _, _, foreign_slot = create_mentor("sadia@test.com")
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/sessions/",
            self._booking_payload(slot_id=foreign_slot.id),
            format="json",
        )
        self.assertEqual(response.status_code, 400, response.data)
        self.assertEqual(response.data["detail"], "Invalid or missing availability slot")

    def test_subscription_booking_is_free_accepted_and_counted(self):
        give_active_plan(self.candidate, mentors=[self.mentor])
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/sessions/",
            self._booking_payload(transaction_id="", amount=None),
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(response.data["is_subscription"])
        self.assertEqual(response.data["status"], "accepted")
        self.assertEqual(response.data["payment_status"], "paid")
        self.assertEqual(response.data["amount"], "0.00")
        self.assertEqual(response.data["meeting_link"], "https://meet.example.com/arafat")

        self.candidate.userprofile.refresh_from_db()
        self.assertEqual(self.candidate.userprofile.sessions_used, 1)
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("0.00"))

        session_id = response.data["id"]
        payment = Payment.objects.get(transaction_id=f"SUB-{session_id}")
        self.assertEqual(payment.payment_method, "system")
        self.assertEqual(payment.amount, Decimal("0.00"))

    def test_subscription_booking_at_limit_is_forbidden(self):
        give_active_plan(self.candidate, mentors=[self.mentor], sessions_used=10)
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/sessions/",
            self._booking_payload(transaction_id="", amount=None),
            format="json",
        )

        self.assertEqual(response.status_code, 403, response.data)
        self.assertEqual(Session.objects.count(), 0)
        self.candidate.userprofile.refresh_from_db()
        self.assertEqual(self.candidate.userprofile.sessions_used, 10)

    def test_active_plan_with_unselected_mentor_needs_payment(self):
        give_active_plan(self.candidate, mentors=[])
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/sessions/",
            self._booking_payload(transaction_id="", amount=None),
            format="json",
        )
        self.assertEqual(response.status_code, 400, response.data)

    def test_commission_rate_is_read_from_current_settings(self):
        PlatformSettings.objects.update(commission_rate=Decimal("10.00"))
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post("/api/sessions/", self._booking_payload(), format="json")
        self.assertEqual(response.status_code, 201, response.data)
        payment = Payment.objects.get(type="session_booking")
        self.assertEqual(payment.admin_commission, Decimal("50.00"))
        self.assertEqual(payment.mentor_amount, Decimal("450.00"))


class SessionStatusTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.mentor, cls.mentor_profile, cls.slot = create_mentor(
            "arafat@test.com",
            meeting_link="https://meet.example.com/arafat",
            wallet_balance=Decimal("400.00"),
        )
        cls.other_mentor, _, _ = create_mentor("sadia@test.com")

    def setUp(self):
        self.session = Session.objects.create(
            mentor=self.mentor,
            candidate=self.candidate,
            start_time=next_start_time(),
            slot=self.slot,
            status="pending",
            payment_status="paid",
            amount=Decimal("500.00"),
        )

    def test_accepting_copies_meeting_link_and_notifies_candidate(self):
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch(
            f"/api/sessions/{self.session.id}/",
            {"status": "accepted"},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["status"], "accepted")
        self.assertEqual(response.data["meeting_link"], "https://meet.example.com/arafat")
        notification = Notification.objects.get(recipient=self.candidate)
        self.assertEqual(notification.type, "session_accepted")
        self.assertEqual(notification.title, "Session Accepted")

    def test_cancelling_notifies_and_keeps_wallet(self):
        self.client.force_authenticate(user=self.mentor)
        response = self.client.put(
            f"/api/sessions/{self.session.id}/",
            {"status": "cancelled"},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertTrue(
            Notification.objects.filter(recipient=self.candidate, type="session_cancelled").exists()
        )
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("400.00"))

    def test_only_assigned_mentor_can_update_status(self):
        for actor in (self.other_mentor, self.candidate):
            self.client.force_authenticate(user=actor)
            response = self.client.patch(
                f"/api/sessions/{self.session.id}/",
                {"status": "accepted"},
                format="json",
            )
            self.assertEqual(response.status_code, 403, response.data)
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, "pending")

    def test_finished_session_cannot_be_reopened(self):
        self.session.status = "completed"
        self.session.save()
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch(
            f"/api/sessions/{self.session.id}/",
            {"status": "accepted"},
            format="json",
        )
        self.assertEqual(response.status_code, 400, response.data)

    def test_unknown_session_returns_404(self):
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch("/api/sessions/999999/", {"status": "accepted"}, format="json")
        self.assertEqual(response.status_code, 404)

    def test_session_list_is_scoped_to_participant(self):
        Session.objects.create(
            mentor=self.other_mentor,
            candidate=create_account("other@test.com", "candidate"),
            start_time=next_start_time(days=3),
        )

        self.client.force_authenticate(user=self.candidate)
        response = self.client.get("/api/sessions/")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual([item["id"] for item in response.data], [self.session.id])
        self.assertEqual(response.data[0]["mentor"]["id"], self.mentor.id)
        self.assertEqual(response.data[0]["mentor_profile_id"], self.mentor_profile.id)

        self.client.force_authenticate(user=self.other_mentor)
        response = self.client.get("/api/sessions/")
        self.assertEqual(len(response.data), 1)
        self.assertNotEqual(response.data[0]["id"], self.session.id)


class PayoutSettlementTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin_user = create_account("admin@test.com", "admin")
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.mentor, cls.mentor_profile, _ = create_mentor(
            "arafat@test.com",
            wallet_balance=Decimal("400.00"),
            earnings=Decimal("400.00"),
        )

    def test_payout_above_balance_is_rejected_without_side_effects(self):
        self.client.force_authenticate(user=self.admin_user)
        response = self.client.post(
            f"/api/admin/payout/{self.mentor.id}/",
            {"amount": "500.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 400, response.data)
        self.assertEqual(response.data["detail"], "Insufficient wallet balance")
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("400.00"))
        self.assertFalse(Payment.objects.filter(type="payout").exists())

    def test_payout_debits_wallet_and_records_ledger_entry(self):
        self.client.force_authenticate(user=self.admin_user)
        response = self.client.post(
            f"/api/admin/payout/{self.mentor.id}/",
            {"amount": "400.00", "transaction_id": "BKASH-77"},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["current_balance"], Decimal("0.00"))
        payment = Payment.objects.get(type="payout")
        self.assertEqual(payment.mentor, self.mentor)
        self.assertEqual(payment.amount, Decimal("400.00"))
        self.assertEqual(payment.transaction_id, "BKASH-77")
        self.assertEqual(payment.status, "completed")
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("0.00"))
        self.assertEqual(self.mentor_profile.earnings, Decimal("400.00"))

        notification = Notification.objects.get(recipient=self.mentor)
        self.assertEqual(notification.type, "payout")
        self.assertEqual(notification.title, "Payout Received")

    def test_payout_within_a_cent_floors_balance_at_zero(self):
        self.client.force_authenticate(user=self.admin_user)
        response = self.client.post(
            f"/api/admin/payout/{self.mentor.id}/",
            {"amount": "400.01"},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("0.00"))
        self.assertTrue(Payment.objects.get(type="payout").transaction_id.startswith("PAY-"))

    def test_payout_requires_admin(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            f"/api/admin/payout/{self.mentor.id}/",
            {"amount": "10.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_payout_for_user_without_mentor_profile_returns_404(self):
        self.client.force_authenticate(user=self.admin_user)
        response = self.client.post(
            f"/api/admin/payout/{self.candidate.id}/",
            {"amount": "10.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_non_positive_amount_is_rejected(self):
        self.client.force_authenticate(user=self.admin_user)
        response = self.client.post(
            f"/api/admin/payout/{self.mentor.id}/",
            {"amount": "0"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)


class SubscriptionTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.mentor_one, _, _ = create_mentor("arafat@test.com")
        cls.mentor_two, _, _ = create_mentor("sadia@test.com")
        cls.mentor_three, _, _ = create_mentor("rahim@test.com")

    def test_purchase_starts_a_fresh_period(self):
        give_active_plan(self.candidate, mentors=[self.mentor_one], sessions_used=4)
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/subscriptions/purchase/",
            {"plan": "monthly", "payment_method": "nagad", "transaction_id": "NGD-1"},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["subscription_plan"], "monthly")
        self.assertEqual(response.data["sessions_used"], 0)
        self.assertEqual(response.data["subscribed_mentors"], [])
        self.assertTrue(response.data["has_active_subscription"])

        payment = Payment.objects.get(type="subscription")
        self.assertEqual(payment.amount, Decimal("500.00"))
        self.assertEqual(payment.payment_method, "nagad")
        self.assertEqual(Subscription.objects.filter(user=self.candidate, is_active=True).count(), 1)

    def test_renewal_deactivates_previous_subscription(self):
        self.client.force_authenticate(user=self.candidate)
        self.client.post("/api/subscriptions/purchase/", {"plan": "monthly"}, format="json")
        response = self.client.post("/api/subscriptions/purchase/", {"plan": "yearly"}, format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(Subscription.objects.filter(user=self.candidate).count(), 2)
        active = Subscription.objects.get(user=self.candidate, is_active=True)
        self.assertEqual(active.plan, "yearly")

        history = self.client.get("/api/subscriptions/")
        self.assertEqual(history.status_code, 200)
        self.assertEqual(len(history.data), 2)

    def test_invalid_plan_is_rejected(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post("/api/subscriptions/purchase/", {"plan": "weekly"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "Invalid plan")
        self.assertFalse(Payment.objects.exists())

    def test_mentor_cannot_purchase(self):
        self.client.force_authenticate(user=self.mentor_one)
        response = self.client.post("/api/subscriptions/purchase/", {"plan": "monthly"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_selection_above_plan_limit_is_rejected(self):
        give_active_plan(self.candidate)
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/subscriptions/select-mentors/",
            {"mentor_ids": [self.mentor_one.id, self.mentor_two.id, self.mentor_three.id]},
            format="json",
        )

        self.assertEqual(response.status_code, 400, response.data)
        self.assertEqual(response.data["detail"], "Your plan only allows selecting 2 mentors.")
        self.assertEqual(self.candidate.userprofile.subscribed_mentors.count(), 0)

    def test_duplicate_ids_count_once_and_new_mentors_are_notified(self):
        give_active_plan(self.candidate, mentors=[self.mentor_one])
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/subscriptions/select-mentors/",
            {"mentor_ids": [self.mentor_one.id, self.mentor_two.id, self.mentor_two.id]},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertCountEqual(response.data["subscribed_mentors"], [self.mentor_one.id, self.mentor_two.id])
        self.assertFalse(Notification.objects.filter(recipient=self.mentor_one).exists())
        notification = Notification.objects.get(recipient=self.mentor_two)
        self.assertEqual(notification.title, "Primary Mentor Selected")
        self.assertEqual(notification.link, "/dashboard?view=sessions")

    def test_selection_requires_active_plan(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/subscriptions/select-mentors/",
            {"mentor_ids": [self.mentor_one.id]},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_only_mentors_can_be_selected(self):
        give_active_plan(self.candidate)
        other_candidate = create_account("nadia@test.com", "candidate")
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/subscriptions/select-mentors/",
            {"mentor_ids": [other_candidate.id]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)


class AuthFlowTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.password = "StrongPass123"
        cls.candidate = create_account("karim@test.com", "candidate", password=cls.password)

    def test_register_candidate_returns_tokens_and_profile(self):
        response = self.client.post(
            "/api/auth/register/",
            {"name": "Nadia Rahman", "email": "Nadia@Test.com", "password": "secret12"},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["role"], "candidate")
        self.assertEqual(response.data["user"]["email"], "nadia@test.com")
        self.assertEqual(response.data["user"]["title"], "Admission Candidate")

    def test_register_mentor_creates_placeholder_mentor_profile(self):
        response = self.client.post(
            "/api/auth/register/",
            {"name": "Rahim Uddin", "email": "rahim@test.com", "password": "secret12", "role": "mentor"},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        mentor_profile = MentorProfile.objects.get(user__email="rahim@test.com")
        self.assertEqual(mentor_profile.university, "Unknown")
        self.assertEqual(mentor_profile.department, "Unknown")
        self.assertFalse(response.data["user"]["is_mentor_verified"])

    def test_register_rejects_duplicate_email_and_admin_role(self):
        duplicate = self.client.post(
            "/api/auth/register/",
            {"name": "Karim", "email": "KARIM@test.com", "password": "secret12"},
            format="json",
        )
        self.assertEqual(duplicate.status_code, 400)

        admin = self.client.post(
            "/api/auth/register/",
            {"name": "Boss", "email": "boss@test.com", "password": "secret12", "role": "admin"},
            format="json",
        )
        self.assertEqual(admin.status_code, 400)

    def test_login_with_email_and_password(self):
        response = self.client.post(
            "/api/login/",
            {"email": "karim@test.com", "password": self.password},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertIn("access", response.data)
        self.assertEqual(response.data["user"]["id"], self.candidate.id)

        bad = self.client.post(
            "/api/login/",
            {"email": "karim@test.com", "password": "wrong-pass"},
            format="json",
        )
        self.assertEqual(bad.status_code, 401)

    def test_bearer_token_authenticates_me_endpoint(self):
        login = self.client.post(
            "/api/login/",
            {"email": "karim@test.com", "password": self.password},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")
        response = self.client.get("/api/auth/me/")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["email"], "karim@test.com")

        self.client.credentials()
        self.assertEqual(self.client.get("/api/auth/me/").status_code, 401)

    def test_forgot_and_reset_password(self):
        response = self.client.post(
            "/api/auth/forgot-password/",
            {"email": "karim@test.com"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(len(mail.outbox), 1)

        token = re.search(r"/reset-password/([0-9a-f]+)", mail.outbox[0].body).group(1)
        profile = UserProfile.objects.get(user=self.candidate)
        self.assertNotEqual(profile.reset_password_token, token)
        self.assertEqual(len(profile.reset_password_token), 64)

        reset = self.client.put(
            f"/api/auth/reset-password/{token}/",
            {"password": "NewPass456"},
            format="json",
        )
        self.assertEqual(reset.status_code, 200, reset.data)
        self.assertIn("access", reset.data)
        self.candidate.refresh_from_db()
        self.assertTrue(self.candidate.check_password("NewPass456"))

        reused = self.client.put(
            f"/api/auth/reset-password/{token}/",
            {"password": "Another789"},
            format="json",
        )
        self.assertEqual(reused.status_code, 400)
        self.assertEqual(reused.data["detail"], "Invalid token")

    def test_expired_reset_token_is_rejected(self):
        self.client.post("/api/auth/forgot-password/", {"email": "karim@test.com"}, format="json")
        token = re.search(r"/reset-password/([0-9a-f]+)", mail.outbox[0].body).group(1)
        UserProfile.objects.filter(user=self.candidate).update(
            reset_password_expire=timezone.now() - timedelta(minutes=1)
        )
        response = self.client.put(
            f"/api/auth/reset-password/{token}/",
            {"password": "NewPass456"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    @patch("core.api_views.send_mail", side_effect=SMTPException("smtp down"))
    def test_failed_reset_email_clears_token(self, _mock_send_mail):
        response = self.client.post(
            "/api/auth/forgot-password/",
            {"email": "karim@test.com"},
            format="json",
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["detail"], "Email could not be sent")
        profile = UserProfile.objects.get(user=self.candidate)
        self.assertEqual(profile.reset_password_token, "")
        self.assertIsNone(profile.reset_password_expire)

    def test_forgot_password_for_unknown_email_returns_404(self):
        response = self.client.post(
            "/api/auth/forgot-password/",
            {"email": "nobody@test.com"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_profile_update_and_public_user_detail(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.patch(
            "/api/auth/profile/",
            {"bio": "Preparing for DU admission", "phone": "01711111111"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["bio"], "Preparing for DU admission")

        self.client.force_authenticate(user=None)
        public = self.client.get(f"/api/auth/users/{self.candidate.id}/")
        self.assertEqual(public.status_code, 200)
        self.assertNotIn("email", public.data)
        self.assertNotIn("phone", public.data)


class MentorDirectoryTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.mentor, cls.mentor_profile, cls.slot = create_mentor(
            "arafat@test.com",
            university="Dhaka University",
            department="Computer Science",
        )
        cls.unverified_mentor, _, _ = create_mentor(
            "rahim@test.com",
            verified=False,
            university="BUET",
            department="EEE",
        )
        cls.medical_mentor, _, _ = create_mentor(
            "sadia@test.com",
            university="Dhaka Medical College",
            department="MBBS",
        )

    def test_list_only_contains_verified_mentors(self):
        response = self.client.get("/api/mentors/")
        self.assertEqual(response.status_code, 200)
        user_ids = {item["user"]["id"] for item in response.data}
        self.assertEqual(user_ids, {self.mentor.id, self.medical_mentor.id})

    def test_keyword_matches_university_or_department(self):
        response = self.client.get("/api/mentors/", {"keyword": "mbbs"})
        self.assertEqual([item["user"]["id"] for item in response.data], [self.medical_mentor.id])

    def test_detail_by_profile_id_and_by_user_id(self):
        Review.objects.create(mentor=self.mentor, candidate=self.candidate, rating=5, comment="Great")
        Session.objects.create(mentor=self.mentor, candidate=self.candidate, start_time=next_start_time())

        by_profile = self.client.get(f"/api/mentors/{self.mentor_profile.id}/")
        self.assertEqual(by_profile.status_code, 200, by_profile.data)
        self.assertEqual(len(by_profile.data["reviews"]), 1)
        self.assertEqual(len(by_profile.data["upcoming_sessions"]), 1)
        self.assertEqual(by_profile.data["availability"][0]["id"], self.slot.id)
        self.assertNotIn("wallet_balance", by_profile.data)

        by_user = self.client.get(f"/api/mentors/by-user/{self.mentor.id}/")
        self.assertEqual(by_user.status_code, 200, by_user.data)
        self.assertEqual(by_user.data["id"], self.mentor_profile.id)
        self.assertEqual(len(by_user.data["reviews"]), 1)

        self.assertEqual(self.client.get("/api/mentors/999999/").status_code, 404)
        self.assertEqual(self.client.get(f"/api/mentors/by-user/{self.candidate.id}/").status_code, 404)

    def test_user_id_equal_to_another_profile_id_resolves_the_right_mentor(self):
        User = get_user_model()
        shared_id = 900001
        tanvir = User.objects.create_user(
            id=shared_id,
            username="tanvir@test.com",
            email="tanvir@test.com",
            password="StrongPass123",
        )
        UserProfile.objects.create(user=tanvir, name="Tanvir", role="mentor", is_mentor_verified=True)
        tanvir_profile = MentorProfile.objects.create(user=tanvir, university="SUST", department="CSE")
        nabila = create_account("nabila@test.com", "mentor", is_mentor_verified=True)
        nabila_profile = MentorProfile.objects.create(pk=shared_id, user=nabila, university="RUET", department="ME")

        by_user = self.client.get(f"/api/mentors/by-user/{shared_id}/")
        self.assertEqual(by_user.status_code, 200, by_user.data)
        self.assertEqual(by_user.data["user"]["id"], tanvir.id)
        self.assertEqual(by_user.data["id"], tanvir_profile.id)

        by_profile = self.client.get(f"/api/mentors/{shared_id}/")
        self.assertEqual(by_profile.status_code, 200, by_profile.data)
        self.assertEqual(by_profile.data["user"]["id"], nabila.id)
        self.assertEqual(by_profile.data["id"], nabila_profile.id)

    def test_mentor_updates_own_profile_and_availability(self):
        accepted = Session.objects.create(
            mentor=self.mentor,
            candidate=self.candidate,
            start_time=next_start_time(),
            status="accepted",
        )
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch(
            "/api/mentors/me/",
            {
                "hourly_rate": "650.00",
                "meeting_link": "https://meet.example.com/new-room",
                "availability": [
                    {"day": "Monday", "start_time": "17:00", "end_time": "19:00"},
                    {"day": "Tuesday", "start_time": "09:00", "end_time": "10:30"},
                ],
                "user_bio": "Happy to help",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["hourly_rate"], "650.00")
        self.assertIn("wallet_balance", response.data)
        self.assertEqual(
            sorted(slot["day"] for slot in response.data["availability"]),
            ["Monday", "Tuesday"],
        )
        self.assertFalse(MentorAvailabilitySlot.objects.filter(pk=self.slot.pk).exists())
        accepted.refresh_from_db()
        self.assertEqual(accepted.meeting_link, "https://meet.example.com/new-room")
        self.mentor.userprofile.refresh_from_db()
        self.assertEqual(self.mentor.userprofile.bio, "Happy to help")

    def test_resubmitted_slots_keep_their_ids_and_bookings(self):
        booked = Session.objects.create(
            mentor=self.mentor,
            candidate=self.candidate,
            slot=self.slot,
            start_time=next_start_time(),
        )
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch(
            "/api/mentors/me/",
            {
                "bio": "Physics and maths",
                "availability": [
                    {"id": self.slot.id, "day": "Friday", "start_time": "10:00", "end_time": "13:00"},
                    {"day": "Saturday", "start_time": "15:00", "end_time": "16:00"},
                ],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        booked.refresh_from_db()
        self.assertEqual(booked.slot_id, self.slot.id)
        self.slot.refresh_from_db()
        self.assertEqual(self.slot.end_time, "13:00")
        self.assertEqual(
            sorted((slot["day"], slot["id"] == self.slot.id) for slot in response.data["availability"]),
            [("Friday", True), ("Saturday", False)],
        )

    def test_slot_id_from_another_mentor_is_rejected(self):
        foreign_slot = self.medical_mentor.mentor_profile.availability_slots.get()
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch(
            "/api/mentors/me/",
            {"availability": [{"id": foreign_slot.id, "day": "Monday", "start_time": "09:00", "end_time": "10:00"}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        foreign_slot.refresh_from_db()
        self.assertEqual(foreign_slot.day, "Friday")
        self.assertTrue(MentorAvailabilitySlot.objects.filter(pk=self.slot.pk).exists())

    def test_invalid_availability_time_is_rejected(self):
        self.client.force_authenticate(user=self.mentor)
        response = self.client.patch(
            "/api/mentors/me/",
            {"availability": [{"day": "Monday", "start_time": "7pm", "end_time": "19:00"}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_own_profile_requires_mentor_role(self):
        self.client.force_authenticate(user=self.candidate)
        self.assertEqual(self.client.get("/api/mentors/me/").status_code, 403)


class ChatApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate", name="Karim Ahmed")
        cls.other_candidate = create_account("nadia@test.com", "candidate")
        cls.mentor, _, _ = create_mentor("arafat@test.com")
        cls.admin_user = create_account("admin@test.com", "admin")

    def test_candidate_can_message_mentor_and_mentor_is_notified(self):
        self.client.force_authenticate(user=self.candidate)
        content = "Hello! Could you help me with the physics syllabus?"
        response = self.client.post(
            "/api/chat/",
            {"receiver": self.mentor.id, "content": content},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["sender"], self.candidate.id)
        self.assertFalse(response.data["is_read"])
        notification = Notification.objects.get(recipient=self.mentor)
        self.assertEqual(notification.type, "new_message")
        self.assertEqual(notification.message, content[:30] + "...")
        self.assertEqual(notification.link, f"/dashboard?view=messages&with={self.candidate.id}")

    def test_chat_is_limited_to_candidate_mentor_pairs(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/chat/",
            {"receiver": self.other_candidate.id, "content": "hi"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(user=self.admin_user)
        response = self.client.post(
            "/api/chat/",
            {"receiver": self.mentor.id, "content": "hi"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Message.objects.exists())

    def test_unknown_receiver_and_blank_content_are_rejected(self):
        self.client.force_authenticate(user=self.candidate)
        self.assertEqual(
            self.client.post("/api/chat/", {"receiver": 999999, "content": "hi"}, format="json").status_code,
            400,
        )
        self.assertEqual(
            self.client.post("/api/chat/", {"receiver": self.mentor.id, "content": "   "}, format="json").status_code,
            400,
        )

    def test_history_partners_and_read_receipts(self):
        Message.objects.create(sender=self.candidate, receiver=self.mentor, content="first")
        Message.objects.create(sender=self.mentor, receiver=self.candidate, content="second")
        Message.objects.create(sender=self.candidate, receiver=self.mentor, content="third")

        self.client.force_authenticate(user=self.mentor)
        history = self.client.get(f"/api/chat/{self.candidate.id}/")
        self.assertEqual(history.status_code, 200)
        self.assertEqual([item["content"] for item in history.data], ["first", "second", "third"])

        unread = self.client.get("/api/chat/unread-count/")
        self.assertEqual(unread.data["count"], 2)

        partners = self.client.get("/api/chat/partners/")
        self.assertEqual(len(partners.data), 1)
        self.assertEqual(partners.data[0]["user"]["id"], self.candidate.id)
        self.assertEqual(partners.data[0]["last_message"], "third")
        self.assertEqual(partners.data[0]["unread_count"], 2)

        marked = self.client.put(f"/api/chat/read/{self.candidate.id}/")
        self.assertEqual(marked.status_code, 200)
        self.assertEqual(marked.data["updated"], 2)
        self.assertEqual(self.client.get("/api/chat/unread-count/").data["count"], 0)


class NotificationApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.mentor, _, _ = create_mentor("arafat@test.com")

    def setUp(self):
        self.own = Notification.objects.create(
            recipient=self.candidate, type="system", title="Welcome", message="Hi"
        )
        Notification.objects.create(recipient=self.candidate, type="system", title="Second", message="Hi")
        self.foreign = Notification.objects.create(
            recipient=self.mentor, type="system", title="Mentor only", message="Hi"
        )

    def test_list_contains_only_own_notifications(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.get("/api/notifications/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual({item["title"] for item in response.data}, {"Welcome", "Second"})

    def test_mark_one_read_checks_ownership(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.put(f"/api/notifications/{self.own.id}/read/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["is_read"])

        forbidden = self.client.put(f"/api/notifications/{self.foreign.id}/read/")
        self.assertEqual(forbidden.status_code, 403)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

        missing = self.client.put("/api/notifications/999999/read/")
        self.assertEqual(missing.status_code, 404)

    def test_read_all_and_unread_count(self):
        self.client.force_authenticate(user=self.candidate)
        self.assertEqual(self.client.get("/api/notifications/unread-count/").data["count"], 2)
        response = self.client.put("/api/notifications/read-all/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["updated"], 2)
        self.assertEqual(self.client.get("/api/notifications/unread-count/").data["count"], 0)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)


class ReviewApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.other_candidate = create_account("nadia@test.com", "candidate")
        cls.mentor, cls.mentor_profile, _ = create_mentor("arafat@test.com")

    def test_reviews_keep_mentor_rating_in_sync(self):
        self.client.force_authenticate(user=self.candidate)
        first = self.client.post(
            "/api/reviews/",
            {"mentor": self.mentor.id, "rating": 5, "comment": "Excellent"},
            format="json",
        )
        self.assertEqual(first.status_code, 201, first.data)

        self.client.force_authenticate(user=self.other_candidate)
        second = self.client.post(
            "/api/reviews/",
            {"mentor": self.mentor.id, "rating": 4, "comment": "Helpful"},
            format="json",
        )
        self.assertEqual(second.status_code, 201, second.data)

        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.rating, Decimal("4.5"))
        self.assertEqual(self.mentor_profile.reviews_count, 2)
        self.assertEqual(Notification.objects.filter(recipient=self.mentor, type="review_received").count(), 2)
        received = Notification.objects.filter(recipient=self.mentor, type="review_received").first()
        self.assertEqual(received.title, "New Review Received")
        self.assertEqual(received.link, "/dashboard?view=reviews")

        update = self.client.patch(f"/api/reviews/{second.data['id']}/", {"rating": 2}, format="json")
        self.assertEqual(update.status_code, 200, update.data)
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.rating, Decimal("3.5"))

        delete = self.client.delete(f"/api/reviews/{second.data['id']}/")
        self.assertEqual(delete.status_code, 204)
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.rating, Decimal("5.0"))
        self.assertEqual(self.mentor_profile.reviews_count, 1)

    def test_only_author_can_change_review(self):
        review = Review.objects.create(mentor=self.mentor, candidate=self.candidate, rating=5, comment="Great")
        self.client.force_authenticate(user=self.other_candidate)
        self.assertEqual(
            self.client.patch(f"/api/reviews/{review.id}/", {"rating": 1}, format="json").status_code,
            403,
        )
        self.assertEqual(self.client.delete(f"/api/reviews/{review.id}/").status_code, 403)

    def test_session_review_requires_completed_own_session(self):
        session = Session.objects.create(
            mentor=self.mentor,
            candidate=self.candidate,
            start_time=next_start_time(),
            status="accepted",
        )
        self.client.force_authenticate(user=self.candidate)
        payload = {"mentor": self.mentor.id, "rating": 5, "comment": "Great", "session": session.id}
        self.assertEqual(self.client.post("/api/reviews/", payload, format="json").status_code, 400)

        session.status = "completed"
        session.save()
        self.client.force_authenticate(user=self.other_candidate)
        self.assertEqual(self.client.post("/api/reviews/", payload, format="json").status_code, 403)

        self.client.force_authenticate(user=self.candidate)
        self.assertEqual(self.client.post("/api/reviews/", payload, format="json").status_code, 201)
        self.assertEqual(self.client.post("/api/reviews/", payload, format="json").status_code, 400)

    def test_rating_out_of_range_and_mentor_role_are_rejected(self):
        self.client.force_authenticate(user=self.candidate)
        response = self.client.post(
            "/api/reviews/",
            {"mentor": self.mentor.id, "rating": 6, "comment": "Too good"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

        self.client.force_authenticate(user=self.mentor)
        response = self.client.post(
            "/api/reviews/",
            {"mentor": self.mentor.id, "rating": 5, "comment": "Self review"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_public_mentor_reviews_and_my_reviews(self):
        Review.objects.create(mentor=self.mentor, candidate=self.candidate, rating=5, comment="Great")
        public = self.client.get(f"/api/reviews/mentor/{self.mentor.id}/")
        self.assertEqual(public.status_code, 200)
        self.assertEqual(len(public.data), 1)
        self.assertEqual(public.data[0]["candidate"]["id"], self.candidate.id)

        self.client.force_authenticate(user=self.other_candidate)
        self.assertEqual(self.client.get("/api/reviews/my-reviews/").data, [])


class AdminApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin_user = create_account("admin@test.com", "admin")
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.applicant, cls.applicant_profile, _ = create_mentor("rahim@test.com", verified=False)
        cls.mentor, _, _ = create_mentor("arafat@test.com", wallet_balance=Decimal("150.00"))

    def test_verify_and_unverify_mentor(self):
        self.client.force_authenticate(user=self.admin_user)
        applications = self.client.get("/api/admin/mentor-applications/")
        self.assertEqual([item["user"]["id"] for item in applications.data], [self.applicant.id])

        response = self.client.put(f"/api/admin/mentors/{self.applicant.id}/verify/")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertTrue(response.data["is_mentor_verified"])
        self.assertTrue(Notification.objects.filter(recipient=self.applicant, type="system").exists())

        response = self.client.put(f"/api/admin/mentors/{self.applicant.id}/unverify/")
        self.assertFalse(response.data["is_mentor_verified"])

        self.assertEqual(self.client.put(f"/api/admin/mentors/{self.candidate.id}/verify/").status_code, 400)

    def test_decline_turns_applicant_into_candidate(self):
        self.client.force_authenticate(user=self.admin_user)
        response = self.client.delete(f"/api/admin/mentors/{self.applicant.id}/decline/")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertFalse(MentorProfile.objects.filter(user=self.applicant).exists())
        self.assertEqual(UserProfile.objects.get(user=self.applicant).role, "candidate")

    def test_stats_and_transactions(self):
        Payment.objects.create(
            user=self.candidate,
            mentor=self.mentor,
            amount=Decimal("500.00"),
            mentor_amount=Decimal("400.00"),
            admin_commission=Decimal("100.00"),
            transaction_id="TXN-1",
            payment_method="bkash",
            type="session_booking",
            status="completed",
        )
        Payment.objects.create(
            user=self.candidate,
            amount=Decimal("500.00"),
            transaction_id="SUBSCRIPTION-1",
            payment_method="bkash",
            type="subscription",
            status="completed",
        )
        Payment.objects.create(
            user=self.mentor,
            mentor=self.mentor,
            amount=Decimal("250.00"),
            mentor_amount=Decimal("250.00"),
            transaction_id="PAY-1",
            payment_method="system",
            type="payout",
            status="completed",
        )

        self.client.force_authenticate(user=self.admin_user)
        stats = self.client.get("/api/admin/stats/")
        self.assertEqual(stats.status_code, 200)
        self.assertEqual(stats.data["total_revenue"], Decimal("1000.00"))
        self.assertEqual(stats.data["total_commission"], Decimal("100.00"))
        self.assertEqual(stats.data["total_mentor_payout"], Decimal("250.00"))
        self.assertEqual(stats.data["payout_count"], 1)
        self.assertEqual(stats.data["total_pending_balance"], Decimal("150.00"))

        transactions = self.client.get("/api/admin/transactions/")
        self.assertEqual(len(transactions.data), 3)

        users = self.client.get("/api/admin/users/", {"role": "mentor"})
        self.assertEqual({item["id"] for item in users.data}, {self.applicant.id, self.mentor.id})

    def test_admin_endpoints_reject_other_roles(self):
        self.client.force_authenticate(user=self.candidate)
        for path in ("/api/admin/stats/", "/api/admin/users/", "/api/admin/transactions/"):
            self.assertEqual(self.client.get(path).status_code, 403, path)

    def test_settings_are_public_to_read_and_admin_only_to_write(self):
        response = self.client.get("/api/admin/settings/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["commission_rate"], "20.00")
        self.assertEqual(response.data["monthly_mentor_limit"], 2)

        self.client.force_authenticate(user=self.candidate)
        self.assertEqual(
            self.client.put("/api/admin/settings/", {"commission_rate": "5.00"}, format="json").status_code,
            403,
        )

        self.client.force_authenticate(user=self.admin_user)
        response = self.client.put(
            "/api/admin/settings/",
            {"commission_rate": "15.00", "monthly_mentor_limit": 3},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(PlatformSettings.objects.count(), 1)
        self.assertEqual(PlatformSettings.load().commission_rate, Decimal("15.00"))

        invalid = self.client.put("/api/admin/settings/", {"commission_rate": "120"}, format="json")
        self.assertEqual(invalid.status_code, 400)

    def test_reports_are_filed_by_users_and_moderated_by_admin(self):
        self.client.force_authenticate(user=self.candidate)
        created = self.client.post(
            "/api/reports/",
            {"reported_user": self.mentor.id, "reason": "No show", "details": "Missed the session"},
            format="json",
        )
        self.assertEqual(created.status_code, 201, created.data)
        self.assertEqual(created.data["status"], "pending")
        self.assertEqual(created.data["reporter"], self.candidate.id)

        self_report = self.client.post(
            "/api/reports/",
            {"reported_user": self.candidate.id, "reason": "Test"},
            format="json",
        )
        self.assertEqual(self_report.status_code, 400)
        self.assertEqual(self.client.get("/api/reports/").status_code, 403)

        self.client.force_authenticate(user=self.admin_user)
        listing = self.client.get("/api/reports/")
        self.assertEqual(len(listing.data), 1)
        resolved = self.client.patch(
            f"/api/reports/{created.data['id']}/",
            {"status": "resolved"},
            format="json",
        )
        self.assertEqual(resolved.status_code, 200, resolved.data)
        self.assertEqual(Report.objects.get().status, "resolved")


class UploadApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")

    def test_public_upload_returns_absolute_url(self):
        upload = SimpleUploadedFile("student-id.png", b"\x89PNG\r\n\x1a\nfake", content_type="image/png")
        response = self.client.post("/api/upload/public/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(response.data["url"].startswith("http://testserver/media/uploads/public/"))
        self.assertTrue(response.data["url"].endswith(".png"))

    def test_authenticated_upload_requires_login(self):
        upload = SimpleUploadedFile("avatar.jpg", b"jpeg-bytes", content_type="image/jpeg")
        response = self.client.post("/api/upload/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 401)

        self.client.force_authenticate(user=self.candidate)
        upload = SimpleUploadedFile("avatar.jpg", b"jpeg-bytes", content_type="image/jpeg")
        response = self.client.post("/api/upload/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 201, response.data)

    def test_disallowed_extension_and_missing_file(self):
        upload = SimpleUploadedFile("script.exe", b"MZ", content_type="application/octet-stream")
        response = self.client.post("/api/upload/public/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/api/upload/public/", {}, format="multipart")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["detail"], "No file uploaded")

    @override_settings(UPLOAD_MAX_BYTES=8)
    def test_oversized_file_is_rejected(self):
        upload = SimpleUploadedFile("scan.pdf", b"%PDF-1.4 more than eight bytes", content_type="application/pdf")
        response = self.client.post("/api/upload/public/", {"file": upload}, format="multipart")
        self.assertEqual(response.status_code, 400)


class WalletSyncCommandTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.candidate = create_account("karim@test.com", "candidate")
        cls.mentor, cls.mentor_profile, _ = create_mentor("arafat@test.com")
        Payment.objects.create(
            user=cls.candidate,
            mentor=cls.mentor,
            amount=Decimal("500.00"),
            mentor_amount=Decimal("400.00"),
            admin_commission=Decimal("100.00"),
            transaction_id="TXN-1",
            payment_method="bkash",
            type="session_booking",
            status="completed",
        )
        Payment.objects.create(
            user=cls.candidate,
            mentor=cls.mentor,
            amount=Decimal("100.00"),
            transaction_id="TXN-LEGACY",
            payment_method="bkash",
            type="session_booking",
            status="completed",
        )
        Payment.objects.create(
            user=cls.mentor,
            mentor=cls.mentor,
            amount=Decimal("150.00"),
            transaction_id="PAY-1",
            payment_method="system",
            type="payout",
            status="completed",
        )

    def test_sync_recomputes_balance_from_ledger(self):
        MentorProfile.objects.filter(pk=self.mentor_profile.pk).update(wallet_balance=Decimal("999.00"))
        self.mentor_profile.refresh_from_db()

        current, expected, changed = sync_wallet_balance(self.mentor_profile)

        self.assertTrue(changed)
        self.assertEqual(current, Decimal("999.00"))
        self.assertEqual(expected, Decimal("330.00"))
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("330.00"))
        self.assertEqual(self.mentor_profile.earnings, Decimal("480.00"))

    def test_small_drift_is_left_alone(self):
        MentorProfile.objects.filter(pk=self.mentor_profile.pk).update(wallet_balance=Decimal("330.05"))
        self.mentor_profile.refresh_from_db()
        _, _, changed = sync_wallet_balance(self.mentor_profile)
        self.assertFalse(changed)

    def test_command_dry_run_reports_without_writing(self):
        MentorProfile.objects.filter(pk=self.mentor_profile.pk).update(wallet_balance=Decimal("0.00"))
        out = StringIO()
        call_command("sync_balances", "--dry-run", stdout=out)

        self.assertIn("would update balance to 330.00", out.getvalue())
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("0.00"))
        self.assertIsNone(Payment.objects.get(transaction_id="TXN-LEGACY").mentor_amount)

        call_command("sync_balances", stdout=StringIO())
        self.mentor_profile.refresh_from_db()
        self.assertEqual(self.mentor_profile.wallet_balance, Decimal("330.00"))

    def test_sync_writes_default_split_to_legacy_payments(self):
        current, expected, changed = sync_wallet_balance(self.mentor_profile)
        self.assertTrue(changed)
        self.assertEqual(expected, Decimal("330.00"))

        legacy = Payment.objects.get(transaction_id="TXN-LEGACY")
        self.assertEqual(legacy.mentor_amount, Decimal("80.00"))
        self.assertEqual(legacy.admin_commission, Decimal("20.00"))

        client = APIClient()
        client.force_authenticate(user=create_account("admin@test.com", "admin"))
        stats = client.get("/api/admin/stats/")
        self.assertEqual(stats.status_code, 200, stats.data)
        self.assertEqual(stats.data["total_commission"], Decimal("120.00"))


class SeedDataCommandTests(TestCase):
    def test_seed_creates_admin_mentors_and_candidate(self):
        call_command("seed_data", stdout=StringIO())
        call_command("seed_data", stdout=StringIO())

        self.assertEqual(UserProfile.objects.filter(role="admin").count(), 1)
        self.assertEqual(UserProfile.objects.filter(role="candidate").count(), 1)
        self.assertEqual(MentorProfile.objects.count(), 3)
        self.assertEqual(
            UserProfile.objects.filter(role="mentor", is_mentor_verified=True).count(),
            2,
        )
        self.assertTrue(MentorAvailabilitySlot.objects.exists())
        self.assertEqual(PlatformSettings.objects.count(), 1)
