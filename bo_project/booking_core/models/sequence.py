from django.db import models


class NumberSequence(models.Model):
    """Per-prefix, per-year counter behind every human-readable number.

    Numbers are issued by incrementing last_value in place, never by
    counting existing rows.
    """

    prefix = models.CharField(max_length=10)  # "HB", "BKG", "INV", "JE" ...
    year = models.PositiveSmallIntegerField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["prefix", "year"], name="uq_sequence_prefix_year"),
        ]

    def __str__(self):
        return f"{self.prefix}-{self.year}: {self.last_value}"
