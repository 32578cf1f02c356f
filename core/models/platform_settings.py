from decimal import Decimal

from django.db import models


class PlatformSettings(models.Model):
    """Singleton row holding commission and subscription pricing.

    Callers load it per request with ``PlatformSettings.load()`` and pass the
    instance into the booking and subscription services. When nothing has been
    saved yet an unsaved instance carrying the field defaults is returned.
    """

    commission_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("20.00")
    )
    admin_payment_number = models.CharField(max_length=30, default="01700000000")
    monthly_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("500.00")
    )
    yearly_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("5000.00")
    )
    monthly_mentor_limit = models.PositiveIntegerField(default=2)
    yearly_mentor_limit = models.PositiveIntegerField(default=5)
    monthly_session_limit = models.PositiveIntegerField(default=10)
    yearly_session_limit = models.PositiveIntegerField(default=100)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        verbose_name = "platform settings"
        verbose_name_plural = "platform settings"

    def __str__(self) -> str:
        return f"Platform settings (commission {self.commission_rate}%)"

    @classmethod
    def load(cls):
        return cls.objects.order_by("id").first() or cls()

    def mentor_limit_for(self, plan: str) -> int:
        return self.yearly_mentor_limit if plan == "yearly" else self.monthly_mentor_limit

    def session_limit_for(self, plan: str) -> int:
        return self.yearly_session_limit if plan == "yearly" else self.monthly_session_limit

    def price_for(self, plan: str) -> Decimal:
        return self.yearly_price if plan == "yearly" else self.monthly_price
