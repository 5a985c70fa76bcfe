# core/models.py

from django.db import models

from business.models import Business


class NumberSequence(models.Model):
    """
    Per-business counters for document numbers.

    next_number is the value the next caller receives. Rows are only
    read and advanced through core.sequences.get_next, which holds an
    exclusive row lock until the caller's transaction ends.
    """

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="number_sequences",
    )
    sequence_key = models.CharField(max_length=50)
    next_number = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["business", "sequence_key"],
                name="uniq_number_sequence_key",
            ),
            models.CheckConstraint(
                condition=models.Q(next_number__gte=1),
                name="chk_number_sequence_positive",
            ),
        ]

    def __str__(self):
        return f"{self.business_id}:{self.sequence_key}={self.next_number}"
