import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("roster", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PerformanceRecord",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("date", models.DateField()),
                (
                    "shift",
                    models.CharField(
                        blank=True,
                        choices=[("morning", "Morning"), ("afternoon", "Afternoon"), ("night", "Night")],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("pieces_made", models.PositiveIntegerField()),
                ("time_taken", models.FloatField(help_text="Hours spent")),
                ("error_rate", models.FloatField(help_text="Percentage of defective pieces, 0-100")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="performance_records",
                        to="catalog.product",
                    ),
                ),
                (
                    "production_line",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="performance_records",
                        to="roster.productionline",
                    ),
                ),
                (
                    "worker",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="performance_records",
                        to="roster.worker",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["date"], name="performance_date_idx"),
                    models.Index(fields=["worker", "date"], name="performance_worker_date_idx"),
                ],
            },
        ),
    ]
