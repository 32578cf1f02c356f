from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api_views import (
    AdminPayoutView,
    AdminStatsView,
    AdminTransactionListView,
    AdminUserListView,
    ChatHistoryView,
    ChatMarkReadView,
    ChatPartnersView,
    ChatSendView,
    ChatUnreadCountView,
    ForgotPasswordView,
    LogoutView,
    MeView,
    MentorApplicationListView,
    MentorDeclineView,
    MentorSelectionView,
    MentorUnverifyView,
    MentorVerificationView,
    MentorViewSet,
    NotificationViewSet,
    PlatformSettingsView,
    ProfileUpdateView,
    PublicUploadView,
    RegisterView,
    ReportViewSet,
    ResetPasswordView,
    ReviewViewSet,
    SessionViewSet,
    SubscriptionHistoryView,
    SubscriptionPurchaseView,
    UploadView,
    UserDetailView,
)

router = DefaultRouter()
router.register(r"mentors", MentorViewSet, basename="mentor")
router.register(r"sessions", SessionViewSet, basename="session")
router.register(r"notifications", NotificationViewSet, basename="notification")
router.register(r"reviews", ReviewViewSet, basename="review")
router.register(r"reports", ReportViewSet, basename="report")


urlpatterns = [
    path("auth/register/", RegisterView.as_view(), name="auth-register"),
    path("auth/me/", MeView.as_view(), name="auth-me"),
    path("auth/profile/", ProfileUpdateView.as_view(), name="auth-profile"),
    path("auth/users/<int:user_id>/", UserDetailView.as_view(), name="auth-user-detail"),
    path("auth/forgot-password/", ForgotPasswordView.as_view(), name="auth-forgot-password"),
    path("auth/reset-password/<str:token>/", ResetPasswordView.as_view(), name="auth-reset-password"),
    path("auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("subscriptions/", SubscriptionHistoryView.as_view(), name="subscription-history"),
    path("subscriptions/purchase/", SubscriptionPurchaseView.as_view(), name="subscription-purchase"),
    path("subscriptions/select-mentors/", MentorSelectionView.as_view(), name="subscription-select-mentors"),
    path("admin/users/", AdminUserListView.as_view(), name="admin-users"),
    path("admin/mentor-applications/", MentorApplicationListView.as_view(), name="admin-mentor-applications"),
    path("admin/mentors/<int:user_id>/verify/", MentorVerificationView.as_view(), name="admin-mentor-verify"),
    path("admin/mentors/<int:user_id>/unverify/", MentorUnverifyView.as_view(), name="admin-mentor-unverify"),
    path("admin/mentors/<int:user_id>/decline/", MentorDeclineView.as_view(), name="admin-mentor-decline"),
    path("admin/stats/", AdminStatsView.as_view(), name="admin-stats"),
    path("admin/transactions/", AdminTransactionListView.as_view(), name="admin-transactions"),
    path("admin/payout/<int:user_id>/", AdminPayoutView.as_view(), name="admin-payout"),
    path("admin/settings/", PlatformSettingsView.as_view(), name="admin-settings"),
    path("chat/", ChatSendView.as_view(), name="chat-send"),
    path("chat/partners/", ChatPartnersView.as_view(), name="chat-partners"),
    path("chat/unread-count/", ChatUnreadCountView.as_view(), name="chat-unread-count"),
    path("chat/read/<int:user_id>/", ChatMarkReadView.as_view(), name="chat-mark-read"),
    path("chat/<int:user_id>/", ChatHistoryView.as_view(), name="chat-history"),
    path("upload/", UploadView.as_view(), name="upload"),
    path("upload/public/", PublicUploadView.as_view(), name="upload-public"),
    path("", include(router.urls)),
]
