import logging
from datetime import date

from django.db import transaction
from django.db.models import Avg, Count, Sum

from assignments.services import AssignmentQueryService
from catalog.models import Product
from factory_floor.exceptions import (
    PerformanceRecordNotFound, ProductInactive, ProductionLineInactive,
    ProductionLineNotFound, ProductNotFound, WorkerNotFound,
)
from factory_floor.pagination import paginate
from roster.models import ProductionLine, Worker
from .models import PerformanceRecord

logger = logging.getLogger(__name__)

FIELD_NAMES = {
    "worker_id": "worker",
    "product_id": "product",
    "production_line_id": "production_line",
}

# group_by value -> column the records are grouped on
GROUP_COLUMNS = {
    "date": "date",
    "worker": "worker_id",
    "product": "product_id",
    "production_line": "production_line_id",
}

GROUP_MODELS = {
    "worker": Worker,
    "product": Product,
    "production_line": ProductionLine,
}


class PerformanceRecordService:
    """Validated reads and writes of per-shift output records."""

    @staticmethod
    def base_queryset():
        return PerformanceRecord.objects.select_related("worker", "product", "production_line")

    @staticmethod
    def check_worker(worker_id: int) -> None:
        if not Worker.objects.filter(pk=worker_id).exists():
            raise WorkerNotFound()

    @staticmethod
    def check_product(product_id: int) -> None:
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise ProductNotFound()
        if not product.is_active:
            raise ProductInactive()

    @staticmethod
    def check_production_line(line_id: int) -> None:
        line = ProductionLine.objects.filter(pk=line_id).first()
        if line is None:
            raise ProductionLineNotFound()
        if not line.is_active:
            raise ProductionLineInactive("Cannot record performance for an inactive production line")

    @classmethod
    def list_records(cls, filters: dict):
        queryset = cls.base_queryset()

        if filters.get("start_date"):
            queryset = queryset.filter(date__gte=filters["start_date"])
        if filters.get("end_date"):
            queryset = queryset.filter(date__lte=filters["end_date"])
        for field in ("worker_id", "product_id", "production_line_id", "shift"):
            if filters.get(field):
                queryset = queryset.filter(**{field: filters[field]})

        queryset = queryset.order_by("-date", "-id")
        return paginate(queryset, filters.get("page") or 1, filters.get("limit") or 100)

    @classmethod
    def get_record(cls, record_id: int) -> PerformanceRecord:
        record = cls.base_queryset().filter(pk=record_id).first()
        if record is None:
            raise PerformanceRecordNotFound()
        return record

    @classmethod
    def create_record(cls, data: dict) -> PerformanceRecord:
        cls.check_worker(data["worker_id"])
        cls.check_product(data["product_id"])
        cls.check_production_line(data["production_line_id"])

        record = PerformanceRecord.objects.create(
            worker_id=data["worker_id"],
            product_id=data["product_id"],
            production_line_id=data["production_line_id"],
            date=data["date"],
            shift=data.get("shift"),
            pieces_made=data["pieces_made"],
            time_taken=data["time_taken"],
            error_rate=data["error_rate"],
        )
        logger.info(
            "Recorded %s pieces for worker %s on %s as record %s",
            record.pieces_made, record.worker_id, record.date, record.pk,
        )
        return cls.get_record(record.pk)

    @classmethod
    def update_record(cls, record_id: int, changes: dict) -> PerformanceRecord:
        """Partial update; only the references present in ``changes`` are re-checked."""
        changes = {field: value for field, value in changes.items() if value is not None}

        with transaction.atomic():
            record = PerformanceRecord.objects.filter(pk=record_id).first()
            if record is None:
                raise PerformanceRecordNotFound()

            if "worker_id" in changes:
                cls.check_worker(changes["worker_id"])
            if "product_id" in changes:
                cls.check_product(changes["product_id"])
            if "production_line_id" in changes:
                cls.check_production_line(changes["production_line_id"])

            for field, value in changes.items():
                setattr(record, field, value)
            if changes:
                update_fields = [FIELD_NAMES.get(field, field) for field in changes]
                record.save(update_fields=update_fields + ["updated_at"])

        if changes:
            logger.info("Updated performance record %s: %s", record.pk, ", ".join(changes))
        return cls.get_record(record.pk)

    @staticmethod
    def delete_record(record_id: int) -> None:
        deleted, _ = PerformanceRecord.objects.filter(pk=record_id).delete()
        if not deleted:
            raise PerformanceRecordNotFound()
        logger.info("Deleted performance record %s", record_id)


class PerformanceAnalyticsService:
    """Output totals and averages over a date window."""

    METRICS = {
        "total_pieces": Sum("pieces_made"),
        "avg_error_rate": Avg("error_rate"),
        "avg_time_taken": Avg("time_taken"),
    }

    @staticmethod
    def _metrics(row: dict) -> dict:
        return {
            "total_pieces": row.get("total_pieces") or 0,
            "avg_error_rate": row.get("avg_error_rate") or 0.0,
            "avg_time_taken": row.get("avg_time_taken") or 0.0,
        }

    @classmethod
    def get_analytics(cls, start: date, end: date, group_by: str = "date",
                      worker_id: int | None = None, production_line_id: int | None = None) -> dict:
        """
        Overall metrics plus one metrics block per ``group_by`` value.

        Date groups come back in calendar order; worker, product and line
        groups by id, each with the referenced object attached.
        """
        queryset = PerformanceRecord.objects.filter(date__gte=start, date__lte=end)
        if worker_id:
            queryset = queryset.filter(worker_id=worker_id)
        if production_line_id:
            queryset = queryset.filter(production_line_id=production_line_id)

        totals = queryset.aggregate(total_records=Count("id"), **cls.METRICS)
        overall = {**cls._metrics(totals), "total_records": totals["total_records"]}

        column = GROUP_COLUMNS[group_by]
        rows = list(
            queryset.values(column)
            .annotate(count=Count("id"), **cls.METRICS)
            .order_by(column)
        )

        related = {}
        if group_by in GROUP_MODELS:
            related = GROUP_MODELS[group_by].objects.in_bulk([row[column] for row in rows])

        grouped = []
        for row in rows:
            entry = {**cls._metrics(row), "count": row["count"]}
            if group_by == "date":
                entry["date"] = row["date"]
            else:
                entry[group_by] = related.get(row[column])
            grouped.append(entry)

        return {
            "overall": overall,
            "grouped": grouped,
            "group_by": group_by,
            "date_range": {"start_date": start, "end_date": end},
        }

    @staticmethod
    def resolve_range(start_date: str | None, end_date: str | None) -> tuple[date, date]:
        return AssignmentQueryService.report_range(start_date, end_date)
