from django.db import models

from assignments.models import Shift
from catalog.models import Product
from roster.models import ProductionLine, Worker


class PerformanceRecord(models.Model):
    """Output of one worker on one product, line and day."""
    id              = models.BigAutoField(primary_key=True)
    worker          = models.ForeignKey(
        Worker,
        on_delete=models.PROTECT,
        related_name="performance_records",
    )
    product         = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="performance_records",
    )
    production_line = models.ForeignKey(
        ProductionLine,
        on_delete=models.PROTECT,
        related_name="performance_records",
    )
    date            = models.DateField()
    shift           = models.CharField(max_length=10, choices=Shift.choices, null=True, blank=True)
    pieces_made     = models.PositiveIntegerField()
    time_taken      = models.FloatField(help_text="Hours spent")
    error_rate      = models.FloatField(help_text="Percentage of defective pieces, 0-100")
    created_at      = models.DateTimeField(auto_now_add=True)
    updated_at      = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["date"], name="performance_date_idx"),
            models.Index(fields=["worker", "date"], name="performance_worker_date_idx"),
        ]

    def __str__(self):
        return f"{self.worker} {self.date}: {self.pieces_made} pieces"
