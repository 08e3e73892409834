import calendar
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime

import numpy as np
from django.db import transaction
from django.db.models import Exists, OuterRef
from django.utils import timezone
from inequality import gini  # type: ignore

from factory_floor.exceptions import (
    AssignmentConflict, AssignmentNotFound, ProductionLineInactive,
    ProductionLineNotFound, RequestValidationError, WorkerNotFound,
)
from factory_floor.pagination import paginate
from roster.models import ProductionLine, Worker
from .models import SHIFT_ORDER, Assignment, shift_rank

logger = logging.getLogger(__name__)

# Fields whose change can move an assignment onto another worker's day and shift
SLOT_FIELDS = ("worker_id", "date", "shift")

FIELD_NAMES = {"worker_id": "worker", "production_line_id": "production_line"}


@dataclass(frozen=True)
class ConflictingAssignment:
    """The existing assignment that already occupies a worker's day and shift."""
    id: int
    production_line_name: str
    position: str


class ConflictDetector:
    """Looks up double bookings of a worker on one calendar day and shift."""

    @staticmethod
    def find_conflict(worker_id: int, day: date, shift: str,
                      exclude_assignment_id: int | None = None) -> ConflictingAssignment | None:
        """Return the first other assignment holding ``(worker_id, day, shift)``, if any."""
        queryset = Assignment.objects.filter(
            worker_id=worker_id, date=day, shift=shift
        ).select_related("production_line")
        if exclude_assignment_id is not None:
            queryset = queryset.exclude(pk=exclude_assignment_id)

        existing = queryset.order_by("id").first()
        if existing is None:
            return None
        return ConflictingAssignment(
            id=existing.id,
            production_line_name=existing.production_line.name,
            position=existing.position,
        )

    @staticmethod
    def conflict_message(conflict: ConflictingAssignment, day: date, shift: str) -> str:
        return (
            f"Worker is already assigned to {conflict.production_line_name} "
            f"on {day.strftime('%a %b %d %Y')} for {shift} shift"
        )

    @classmethod
    def raise_for_conflict(cls, worker_id: int, day: date, shift: str,
                           exclude_assignment_id: int | None = None) -> None:
        conflict = cls.find_conflict(worker_id, day, shift, exclude_assignment_id)
        if conflict is None:
            return

        logger.warning(
            "Rejected double booking of worker %s on %s (%s): held by assignment %s",
            worker_id, day, shift, conflict.id,
        )
        raise AssignmentConflict(
            cls.conflict_message(conflict, day, shift),
            conflicting_assignment={
                "id": conflict.id,
                "production_line_name": conflict.production_line_name,
                "position": conflict.position,
            },
        )


class AssignmentService:
    """Validated writes for shift assignments."""

    @staticmethod
    def get_worker(worker_id: int) -> Worker:
        worker = Worker.objects.filter(pk=worker_id).first()
        if worker is None:
            raise WorkerNotFound()
        return worker

    @staticmethod
    def get_active_production_line(line_id: int) -> ProductionLine:
        line = ProductionLine.objects.filter(pk=line_id).first()
        if line is None:
            raise ProductionLineNotFound()
        if not line.is_active:
            raise ProductionLineInactive()
        return line

    @staticmethod
    def lock_worker(worker_id: int) -> None:
        """
        Take a row lock on the worker for the rest of the transaction so that
        concurrent writes for the same worker run the conflict check one at a time.
        """
        list(Worker.objects.select_for_update().filter(pk=worker_id).values_list("pk", flat=True))

    @staticmethod
    def _load(assignment_id: int) -> Assignment:
        return Assignment.objects.select_related("worker", "production_line").get(pk=assignment_id)

    @classmethod
    def create_assignment(cls, data: dict) -> Assignment:
        worker = cls.get_worker(data["worker_id"])
        line = cls.get_active_production_line(data["production_line_id"])

        with transaction.atomic():
            cls.lock_worker(worker.pk)
            ConflictDetector.raise_for_conflict(worker.pk, data["date"], data["shift"])
            assignment = Assignment.objects.create(
                worker=worker,
                production_line=line,
                position=data["position"],
                date=data["date"],
                shift=data["shift"],
            )

        logger.info(
            "Assigned worker %s to line %s on %s (%s) as assignment %s",
            worker.pk, line.pk, assignment.date, assignment.shift, assignment.pk,
        )
        return cls._load(assignment.pk)

    @classmethod
    def update_assignment(cls, assignment_id: int, changes: dict) -> Assignment:
        """
        Partial update. Only supplied references are validated, and the
        conflict check runs only when the worker, date or shift changes.
        """
        changes = {field: value for field, value in changes.items() if value is not None}

        with transaction.atomic():
            assignment = Assignment.objects.filter(pk=assignment_id).first()
            if assignment is None:
                raise AssignmentNotFound()

            if "worker_id" in changes:
                cls.get_worker(changes["worker_id"])
            if "production_line_id" in changes:
                cls.get_active_production_line(changes["production_line_id"])

            if any(field in changes for field in SLOT_FIELDS):
                worker_id = changes.get("worker_id", assignment.worker_id)
                day = changes.get("date", assignment.date)
                shift = changes.get("shift", assignment.shift)

                cls.lock_worker(worker_id)
                ConflictDetector.raise_for_conflict(
                    worker_id, day, shift, exclude_assignment_id=assignment.pk
                )

            for field, value in changes.items():
                setattr(assignment, field, value)
            if changes:
                update_fields = [FIELD_NAMES.get(field, field) for field in changes]
                assignment.save(update_fields=update_fields + ["updated_at"])

        if changes:
            logger.info("Updated assignment %s: %s", assignment.pk, ", ".join(changes))
        return cls._load(assignment.pk)

    @staticmethod
    def delete_assignment(assignment_id: int) -> None:
        deleted, _ = Assignment.objects.filter(pk=assignment_id).delete()
        if not deleted:
            raise AssignmentNotFound()
        logger.info("Deleted assignment %s", assignment_id)


class AssignmentQueryService:
    """Read side: listings, calendar grouping and the conflict audit report."""

    @staticmethod
    def base_queryset():
        return Assignment.objects.select_related("worker", "production_line")

    @classmethod
    def list_assignments(cls, filters: dict):
        """Filtered page of assignments, most recent date first."""
        queryset = cls.base_queryset()

        if filters.get("start_date"):
            queryset = queryset.filter(date__gte=filters["start_date"])
        if filters.get("end_date"):
            queryset = queryset.filter(date__lte=filters["end_date"])
        if filters.get("worker_id"):
            queryset = queryset.filter(worker_id=filters["worker_id"])
        if filters.get("production_line_id"):
            queryset = queryset.filter(production_line_id=filters["production_line_id"])
        if filters.get("shift"):
            queryset = queryset.filter(shift=filters["shift"])
        if filters.get("position"):
            queryset = queryset.filter(position__icontains=filters["position"])

        queryset = queryset.order_by("-date", "-id")
        return paginate(queryset, filters.get("page") or 1, filters.get("limit") or 20)

    @classmethod
    def get_assignment(cls, assignment_id: int) -> Assignment:
        assignment = cls.base_queryset().filter(pk=assignment_id).first()
        if assignment is None:
            raise AssignmentNotFound()
        return assignment

    @staticmethod
    def month_bounds(year: int, month: int) -> tuple[date, date]:
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)

    @staticmethod
    def _calculate_gini_coefficient(values):
        """Calculate Gini coefficient for a list of values."""
        if len(values) <= 1 or not sum(values):
            return 0.0
        return float(gini.Gini(np.asarray(values, dtype=float)).g)

    @classmethod
    def get_calendar(cls, year: int, month: int,
                     worker_id: int | None = None, production_line_id: int | None = None):
        """
        Group one month of assignments by ISO day.

        Returns the ``{"YYYY-MM-DD": [assignment, ...]}`` mapping ordered by day
        and shift, plus a summary with the shift-count Gini coefficient across
        the scheduled workers (0 = perfectly even workload).
        """
        first_day, last_day = cls.month_bounds(year, month)

        queryset = cls.base_queryset().filter(date__gte=first_day, date__lte=last_day)
        if worker_id:
            queryset = queryset.filter(worker_id=worker_id)
        if production_line_id:
            queryset = queryset.filter(production_line_id=production_line_id)
        assignments = list(
            queryset.annotate(shift_rank=shift_rank()).order_by("date", "shift_rank", "id")
        )

        grouped: dict[str, list[Assignment]] = defaultdict(list)
        shifts_per_worker: Counter = Counter()
        for assignment in assignments:
            grouped[assignment.date.isoformat()].append(assignment)
            shifts_per_worker[assignment.worker_id] += 1

        summary = {
            "year": year,
            "month": month,
            "total_assignments": len(assignments),
            "days_with_assignments": len(grouped),
            "workers_scheduled": len(shifts_per_worker),
            "workload_gini": round(
                cls._calculate_gini_coefficient(list(shifts_per_worker.values())), 3
            ),
        }
        return dict(grouped), summary

    @staticmethod
    def parse_report_date(raw: str | None, default: date, code: str, label: str) -> date:
        if raw is None or not raw.strip():
            return default
        text = raw.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError:
            raise RequestValidationError(f"Invalid {label} date format", code=code)

    @classmethod
    def report_range(cls, start_date: str | None, end_date: str | None) -> tuple[date, date]:
        """Resolve the report window, defaulting each bound to the current month."""
        today = timezone.localdate()
        month_start, month_end = cls.month_bounds(today.year, today.month)
        start = cls.parse_report_date(start_date, month_start, "INVALID_START_DATE", "start")
        end = cls.parse_report_date(end_date, month_end, "INVALID_END_DATE", "end")
        return start, end

    @classmethod
    def get_conflict_report(cls, start: date, end: date) -> list[dict]:
        """
        Every (worker, date, shift) slot in ``[start, end]`` held by two or more
        assignments, with the colliding assignments and the worker's profile.
        """
        same_slot = Assignment.objects.filter(
            worker_id=OuterRef("worker_id"), date=OuterRef("date"), shift=OuterRef("shift"),
        ).exclude(pk=OuterRef("pk"))
        rows = (
            Assignment.objects.filter(date__gte=start, date__lte=end)
            .filter(Exists(same_slot))
            .select_related("worker", "production_line")
            .order_by("id")
        )

        colliding = defaultdict(list)
        workers = {}
        for row in rows:
            slot = (row.worker_id, row.date, row.shift)
            workers[row.worker_id] = row.worker
            colliding[slot].append({
                "assignment_id": row.id,
                "production_line_id": row.production_line_id,
                "production_line_name": row.production_line.name,
                "position": row.position,
            })

        slots = sorted(
            colliding,
            key=lambda s: (s[1], SHIFT_ORDER.get(s[2], len(SHIFT_ORDER)), s[0]),
        )
        return [
            {
                "worker_id": worker_id,
                "date": day,
                "shift": shift,
                "assignments": colliding[(worker_id, day, shift)],
                "worker": workers.get(worker_id),
            }
            for worker_id, day, shift in slots
        ]
