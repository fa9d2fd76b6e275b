from django.db import models


# ---------- Currency ----------
class Currency(models.Model):  # Store a list of valid currencies
    """
    ISO currencies. Halls and events point at a Currency row
    instead of carrying free-text codes.
    """
    code = models.CharField(max_length=3, primary_key=True)  # 'NGN', 'USD'
    name = models.CharField(max_length=64)  # 'Nigerian Naira'
    symbol = models.CharField(max_length=8, blank=True, null=True)
    decimal_places = models.PositiveSmallIntegerField(default=2)

    class Meta:
        # “currencies” instead of default “currencys” in admin
        verbose_name_plural = "currencies"

    def __str__(self):
        return f"{self.code} ({self.symbol or ''})"
