import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.core.management.color import no_style
from django.db import connection, transaction
from pydantic import ValidationError as PydanticValidationError

from assignments.models import Assignment
from assignments.schemas import AssignmentCreateSchema
from assignments.services import AssignmentService
from factory_floor.exceptions import ApiError
from performance.models import PerformanceRecord
from roster.models import ProductionLine, Worker


class Command(BaseCommand):
    help = "Load demo seed data (workers, production lines, assignments) from JSON files."

    def add_arguments(self, parser):
        parser.add_argument(
            "--truncate",
            action="store_true",
            help="Delete existing data before loading.",
        )
        parser.add_argument(
            "--dir",
            default="seed_data",
            help="Directory containing JSON files (default: seed_data).",
        )

    def reset_sequences(self, models):
        """Move id sequences past the explicit ids written by bulk_create (PostgreSQL)."""
        statements = connection.ops.sequence_reset_sql(no_style(), models)
        if not statements:
            return
        with connection.cursor() as cursor:
            for sql in statements:
                cursor.execute(sql)

    @transaction.atomic
    def handle(self, *args, **options):
        base_dir = Path(options["dir"]).resolve()

        # 1. optional clean
        if options["truncate"]:
            self.stdout.write("Deleting existing records…")
            PerformanceRecord.objects.all().delete()
            Assignment.objects.all().delete()
            Worker.objects.all().delete()
            ProductionLine.objects.all().delete()

        # 2. load json helpers
        def load_json(name):
            path = base_dir / f"{name}.json"
            if not path.exists():
                raise CommandError(f"{path} not found")
            with open(path) as f:
                return json.load(f)

        workers = load_json("workers")
        lines   = load_json("production_lines")
        assigns = load_json("assignments")

        # 3. roster in bulk
        Worker.objects.bulk_create(
            [
                Worker(
                    id=w["id"],
                    name=w["name"],
                    cin=w["cin"],
                    email=w.get("email"),
                    phone=w.get("phone"),
                    role=w.get("role"),
                )
                for w in workers
            ],
            ignore_conflicts=True,
        )
        ProductionLine.objects.bulk_create(
            [
                ProductionLine(
                    id=p["id"],
                    name=p["name"],
                    description=p.get("description"),
                    location=p.get("location"),
                    capacity=p.get("capacity"),
                    target_output=p.get("target_output"),
                    is_active=p.get("is_active", True),
                )
                for p in lines
            ],
            ignore_conflicts=True,
        )
        self.reset_sequences([Worker, ProductionLine])

        # 4. assignments one by one so double bookings are rejected
        created = 0
        for index, a in enumerate(assigns, start=1):
            try:
                payload = AssignmentCreateSchema(**a)
                AssignmentService.create_assignment(payload.model_dump())
            except PydanticValidationError as exc:
                self.stdout.write(self.style.WARNING(f"Skipped assignment #{index}: {exc.errors()[0]['msg']}"))
                continue
            except ApiError as exc:
                self.stdout.write(self.style.WARNING(f"Skipped assignment #{index}: {exc.message}"))
                continue
            created += 1

        self.stdout.write(self.style.SUCCESS(
            f"✅  Seed data loaded: {len(workers)} workers, {len(lines)} production lines, "
            f"{created}/{len(assigns)} assignments"
        ))
