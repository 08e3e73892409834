from django.db import models
from django.db.models import Case, IntegerField, Value, When

from roster.models import ProductionLine, Worker


class Shift(models.TextChoices):
    MORNING   = "morning", "Morning"
    AFTERNOON = "afternoon", "Afternoon"
    NIGHT     = "night", "Night"


# Position of each shift within a working day
SHIFT_ORDER = {shift.value: index for index, shift in enumerate(Shift)}


def shift_rank():
    """Expression ranking ``shift`` in working-day order rather than alphabetically."""
    return Case(
        *[When(shift=value, then=Value(rank)) for value, rank in SHIFT_ORDER.items()],
        default=Value(len(SHIFT_ORDER)),
        output_field=IntegerField(),
    )


class Assignment(models.Model):
    id              = models.BigAutoField(primary_key=True)
    worker          = models.ForeignKey(
        Worker,
        on_delete=models.PROTECT,
        related_name="assignments"
    )
    production_line = models.ForeignKey(
        ProductionLine,
        on_delete=models.PROTECT,
        related_name="assignments"
    )
    position        = models.CharField(max_length=100)
    date            = models.DateField()
    shift           = models.CharField(max_length=10, choices=Shift.choices)
    created_at      = models.DateTimeField(auto_now_add=True)
    updated_at      = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["date"], name="assignment_date_idx"),
            models.Index(fields=["worker", "date", "shift"], name="assignment_worker_slot_idx"),
            models.Index(fields=["production_line", "date"], name="assignment_line_date_idx"),
        ]

    def __str__(self):
        return f"{self.worker_id} @ {self.production_line_id} on {self.date} ({self.shift})"
