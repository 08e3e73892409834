import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("roster", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Assignment",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("position", models.CharField(max_length=100)),
                ("date", models.DateField()),
                (
                    "shift",
                    models.CharField(
                        choices=[("morning", "Morning"), ("afternoon", "Afternoon"), ("night", "Night")],
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "production_line",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assignments",
                        to="roster.productionline",
                    ),
                ),
                (
                    "worker",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assignments",
                        to="roster.worker",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["date"], name="assignment_date_idx"),
                    models.Index(fields=["worker", "date", "shift"], name="assignment_worker_slot_idx"),
                    models.Index(fields=["production_line", "date"], name="assignment_line_date_idx"),
                ],
            },
        ),
    ]
