from django.contrib import admin, messages
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

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
from .wallet import sync_wallet_balance

User = get_user_model()


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False
    extra = 0
    max_num = 1
    filter_horizontal = ('subscribed_mentors',)


class AppUserAdmin(DjangoUserAdmin):
    inlines = (UserProfileInline,)
    list_display = DjangoUserAdmin.list_display + ('profile_role',)
    actions = ('mark_as_admin_role',)

    @admin.display(description='Role')
    def profile_role(self, obj):
        return getattr(getattr(obj, 'userprofile', None), 'role', '-')

    @admin.action(description='Set selected users role as admin')
    def mark_as_admin_role(self, request, queryset):
        updated_count = 0
        for user in queryset:
            UserProfile.objects.update_or_create(
                user=user,
                defaults={'role': 'admin', 'name': user.get_full_name() or user.username},
            )
            updated_count += 1
        self.message_user(
            request,
            f'{updated_count} user(s) updated with admin role.',
            level=messages.SUCCESS,
        )


try:
    admin.site.unregister(User)
except admin.sites.NotRegistered:
    pass
admin.site.register(User, AppUserAdmin)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'name', 'role', 'subscription_plan', 'sessions_used', 'created_at')
    list_filter = ('role', 'subscription_plan', 'is_mentor_verified')
    search_fields = ('user__username', 'user__email', 'name')
    exclude = ('reset_password_token', 'reset_password_expire')
    filter_horizontal = ('subscribed_mentors',)


class MentorAvailabilitySlotInline(admin.TabularInline):
    model = MentorAvailabilitySlot
    extra = 0


@admin.register(MentorProfile)
class MentorProfileAdmin(admin.ModelAdmin):
    list_display = (
        'user',
        'university',
        'department',
        'hourly_rate',
        'rating',
        'reviews_count',
        'wallet_balance',
        'earnings',
    )
    search_fields = ('user__email', 'user__first_name', 'user__last_name', 'university')
    readonly_fields = ('rating', 'reviews_count', 'earnings', 'wallet_balance')
    inlines = (MentorAvailabilitySlotInline,)
    actions = ('resync_wallet_balance',)

    @admin.action(description='Recalculate wallet balance from payments')
    def resync_wallet_balance(self, request, queryset):
        changed_count = 0
        for mentor_profile in queryset:
            _, _, changed = sync_wallet_balance(mentor_profile)
            if changed:
                changed_count += 1
        self.message_user(
            request,
            f'{changed_count} wallet(s) corrected.',
            level=messages.SUCCESS,
        )


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = (
        'id',
        'candidate',
        'mentor',
        'start_time',
        'duration',
        'status',
        'payment_status',
        'amount',
        'is_subscription',
    )
    list_filter = ('status', 'payment_status', 'is_subscription')
    search_fields = ('candidate__email', 'mentor__email')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        'id',
        'user',
        'mentor',
        'type',
        'payment_method',
        'status',
        'amount',
        'mentor_amount',
        'admin_commission',
        'created_at',
    )
    list_filter = ('type', 'status', 'payment_method')
    search_fields = ('user__email', 'mentor__email', 'transaction_id', 'reference')


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ('user', 'plan', 'start_date', 'end_date', 'is_active')
    list_filter = ('plan', 'is_active')
    search_fields = ('user__email',)


@admin.register(PlatformSettings)
class PlatformSettingsAdmin(admin.ModelAdmin):
    list_display = (
        'commission_rate',
        'monthly_price',
        'yearly_price',
        'monthly_mentor_limit',
        'yearly_mentor_limit',
        'updated_at',
    )

    def has_add_permission(self, request):
        return not PlatformSettings.objects.exists()


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'type', 'title', 'is_read', 'created_at')
    list_filter = ('type', 'is_read')
    search_fields = ('recipient__email', 'title')


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('mentor', 'candidate', 'rating', 'session', 'created_at')
    list_filter = ('rating',)
    search_fields = ('mentor__email', 'candidate__email')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('sender', 'receiver', 'is_read', 'created_at')
    list_filter = ('is_read',)
    search_fields = ('sender__email', 'receiver__email')


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('reporter', 'reported_user', 'reason', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('reporter__email', 'reported_user__email', 'reason')
