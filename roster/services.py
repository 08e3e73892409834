import csv
import io
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from pydantic import ValidationError as PydanticValidationError

from factory_floor.exceptions import (
    DuplicateValue, ProductionLineNotFound, RequestValidationError, WorkerNotFound,
)
from .models import ProductionLine, Worker
from .schemas import WorkerCreateSchema

logger = logging.getLogger(__name__)

# (field, error code, label used in messages)
UNIQUE_WORKER_FIELDS = (
    ("cin", "CIN_EXISTS", "CIN"),
    ("email", "EMAIL_EXISTS", "email"),
    ("phone", "PHONE_EXISTS", "phone number"),
)

NULLABLE_WORKER_FIELDS = ("email", "phone", "role")


class WorkerService:
    """Service class for worker roster operations."""

    @staticmethod
    def get_workers():
        """All workers annotated with their assignment count, newest first."""
        return Worker.objects.annotate(
            assignment_count=Count("assignments")
        ).order_by("-created_at", "-id")

    @staticmethod
    def get_worker(worker_id: int) -> Worker:
        worker = Worker.objects.annotate(
            assignment_count=Count("assignments")
        ).filter(pk=worker_id).first()
        if worker is None:
            raise WorkerNotFound()

        worker.recent_assignments = list(
            worker.assignments.select_related("production_line").order_by("-date", "-id")[:20]
        )
        return worker

    @staticmethod
    def ensure_unique(values: dict, exclude_id: int | None = None) -> None:
        """Raise ``DuplicateValue`` when cin, email or phone already belongs to another worker."""
        for field, code, label in UNIQUE_WORKER_FIELDS:
            value = values.get(field)
            if not value:
                continue
            clash = Worker.objects.filter(**{field: value})
            if exclude_id is not None:
                clash = clash.exclude(pk=exclude_id)
            if clash.exists():
                raise DuplicateValue(f"This {label} is already in use", code=code)

    @classmethod
    def create_worker(cls, data: dict) -> Worker:
        cls.ensure_unique(data)
        worker = Worker.objects.create(
            name=data["name"],
            cin=data["cin"],
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            role=data.get("role") or None,
        )
        logger.info("Created worker %s (cin=%s)", worker.pk, worker.cin)
        return worker

    @classmethod
    def update_worker(cls, worker_id: int, changes: dict) -> Worker:
        """
        Partial update. Empty ``email``, ``phone`` or ``role`` clear the field;
        an empty ``name`` or ``cin`` is ignored.
        """
        worker = Worker.objects.filter(pk=worker_id).first()
        if worker is None:
            raise WorkerNotFound()

        cls.ensure_unique(changes, exclude_id=worker.pk)

        updated_fields = []
        for field, value in changes.items():
            if field in NULLABLE_WORKER_FIELDS:
                setattr(worker, field, value or None)
            elif value:
                setattr(worker, field, value)
            else:
                continue
            updated_fields.append(field)

        if updated_fields:
            worker.save(update_fields=updated_fields + ["updated_at"])
            logger.info("Updated worker %s: %s", worker.pk, ", ".join(updated_fields))
        return worker

    @staticmethod
    def delete_worker(worker_id: int) -> None:
        worker = Worker.objects.filter(pk=worker_id).first()
        if worker is None:
            raise WorkerNotFound()
        worker.delete()
        logger.info("Deleted worker %s", worker_id)


class WorkerImportService:
    """Batch worker import from CSV uploads."""

    REQUIRED_COLUMNS = ("name", "cin")
    # Windows browsers label .csv uploads as Excel
    ACCEPTED_CONTENT_TYPES = ("text/csv", "application/vnd.ms-excel")

    @staticmethod
    def pick_upload(*uploads):
        for upload in uploads:
            if upload is not None:
                return upload
        raise RequestValidationError("No file uploaded", code="NO_FILE")

    @classmethod
    def check_upload(cls, content_type: str | None, size: int | None, filename: str | None = None) -> None:
        is_csv_name = (filename or "").lower().endswith(".csv")
        if content_type not in cls.ACCEPTED_CONTENT_TYPES and not is_csv_name:
            raise RequestValidationError("Only CSV files are allowed", code="INVALID_FILE_TYPE")
        if size is not None and size > settings.WORKER_IMPORT_MAX_BYTES:
            limit_mb = settings.WORKER_IMPORT_MAX_BYTES // (1024 * 1024)
            raise RequestValidationError(f"File exceeds the {limit_mb} MB limit", code="FILE_TOO_LARGE")

    @classmethod
    def parse_rows(cls, raw: bytes) -> list[dict[str, str | None]]:
        """Decode the upload and return one dict per data row with trimmed values."""
        try:
            text = raw.decode("utf-8-sig")
            reader = csv.DictReader(io.StringIO(text))
            rows = []
            for record in reader:
                if not any((value or "").strip() for value in record.values() if isinstance(value, str)):
                    continue
                rows.append({
                    (key or "").strip(): (value.strip() if isinstance(value, str) else None)
                    for key, value in record.items()
                    if key is not None
                })
        except (UnicodeDecodeError, csv.Error):
            raise RequestValidationError("Invalid CSV format", code="INVALID_CSV")

        if not rows:
            raise RequestValidationError("CSV file is empty", code="EMPTY_CSV")

        missing = [column for column in cls.REQUIRED_COLUMNS if column not in rows[0]]
        if missing:
            raise RequestValidationError(
                f"Missing required columns: {', '.join(missing)}", code="MISSING_COLUMNS"
            )
        return rows

    @staticmethod
    def _row_error(exc: PydanticValidationError) -> str:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid value")
        return f"{field}: {message}" if field else message

    @classmethod
    def import_workers(cls, raw: bytes) -> dict:
        """
        Import every row that passes validation; rejected rows are reported
        with their 1-based CSV line number (the header is row 1).
        """
        rows = cls.parse_rows(raw)
        results = {"success": [], "errors": [], "total": len(rows)}

        for index, record in enumerate(rows):
            row_number = index + 2

            if not record.get("name") or not record.get("cin"):
                results["errors"].append({
                    "row": row_number, "data": record,
                    "error": "Missing required fields (name, cin)",
                })
                continue

            try:
                payload = WorkerCreateSchema(
                    name=record["name"],
                    cin=record["cin"],
                    email=record.get("email") or None,
                    phone=record.get("phone") or None,
                    role=record.get("role") or None,
                )
            except PydanticValidationError as exc:
                results["errors"].append({"row": row_number, "data": record, "error": cls._row_error(exc)})
                continue

            try:
                with transaction.atomic():
                    worker = WorkerService.create_worker(payload.model_dump())
            except DuplicateValue as exc:
                results["errors"].append({"row": row_number, "data": record, "error": exc.message})
                continue

            results["success"].append({"row": row_number, "worker": worker})

        logger.info(
            "Worker import finished: %d imported, %d rejected",
            len(results["success"]), len(results["errors"]),
        )
        return results


class ProductionLineService:
    """Service class for production line administration."""

    NULLABLE_FIELDS = ("description", "location", "capacity", "target_output")

    @staticmethod
    def _today_filter() -> Q:
        return Q(assignments__date=timezone.localdate())

    @classmethod
    def get_production_lines(cls):
        return ProductionLine.objects.annotate(
            current_assignments=Count("assignments", filter=cls._today_filter())
        ).order_by("name", "id")

    @classmethod
    def get_production_line(cls, line_id: int) -> ProductionLine:
        line = cls.get_production_lines().filter(pk=line_id).first()
        if line is None:
            raise ProductionLineNotFound()

        line.recent_assignments = list(
            line.assignments.select_related("worker").order_by("-date", "-id")[:50]
        )
        return line

    @staticmethod
    def _get(line_id: int) -> ProductionLine:
        line = ProductionLine.objects.filter(pk=line_id).first()
        if line is None:
            raise ProductionLineNotFound()
        return line

    @staticmethod
    def create_production_line(data: dict) -> ProductionLine:
        line = ProductionLine.objects.create(
            name=data["name"],
            description=data.get("description") or None,
            location=data.get("location") or None,
            capacity=data.get("capacity"),
            target_output=data.get("target_output"),
        )
        logger.info("Created production line %s (%s)", line.pk, line.name)
        return line

    @classmethod
    def update_production_line(cls, line_id: int, changes: dict) -> ProductionLine:
        """Partial update; ``None`` clears optional fields and is ignored for ``name`` and ``is_active``."""
        line = cls._get(line_id)

        updated_fields = []
        for field, value in changes.items():
            if value is None and field not in cls.NULLABLE_FIELDS:
                continue
            setattr(line, field, value)
            updated_fields.append(field)

        if updated_fields:
            line.save(update_fields=updated_fields + ["updated_at"])
            logger.info("Updated production line %s: %s", line.pk, ", ".join(updated_fields))
        return line

    @classmethod
    def toggle_production_line(cls, line_id: int) -> ProductionLine:
        line = cls._get(line_id)
        line.is_active = not line.is_active
        line.save(update_fields=["is_active", "updated_at"])
        logger.info("Production line %s is now %s", line.pk, "active" if line.is_active else "inactive")
        return line

    @classmethod
    def delete_production_line(cls, line_id: int) -> None:
        cls._get(line_id).delete()
        logger.info("Deleted production line %s", line_id)
