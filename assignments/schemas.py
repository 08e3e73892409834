import datetime as dt

from ninja import Field, Schema
from pydantic import field_validator

from factory_floor.schemas import PaginationSchema
from roster.schemas import (
    ProductionLineBriefSchema, ProductionLineSchema, WorkerBriefSchema, WorkerContactSchema,
)
from .models import Shift


def truncate_to_day(value):
    """Accept full timestamps for assignment dates and keep only the calendar day."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if "T" in text or " " in text:
            try:
                return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            except ValueError:
                return value
    return value


class AssignmentSchema(Schema):
    """Assignment as returned in lists, calendars and write responses."""
    id: int
    date: dt.date
    shift: Shift
    position: str
    worker: WorkerBriefSchema
    production_line: ProductionLineBriefSchema
    created_at: dt.datetime
    updated_at: dt.datetime


class AssignmentDetailSchema(AssignmentSchema):
    worker: WorkerContactSchema
    production_line: ProductionLineSchema


class AssignmentCreateSchema(Schema):
    worker_id: int = Field(..., gt=0)
    production_line_id: int = Field(..., gt=0)
    position: str = Field(..., min_length=1, max_length=100)
    date: dt.date
    shift: Shift

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return truncate_to_day(value)


class AssignmentUpdateSchema(Schema):
    worker_id: int | None = Field(None, gt=0)
    production_line_id: int | None = Field(None, gt=0)
    position: str | None = Field(None, min_length=1, max_length=100)
    date: dt.date | None = None
    shift: Shift | None = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return truncate_to_day(value)


class AssignmentFilterSchema(Schema):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    worker_id: int | None = Field(None, gt=0)
    production_line_id: int | None = Field(None, gt=0)
    shift: Shift | None = None
    position: str | None = None


class CalendarQuerySchema(Schema):
    year: int = Field(..., ge=2020, le=2030)
    month: int = Field(..., ge=1, le=12)
    worker_id: int | None = Field(None, gt=0)
    production_line_id: int | None = Field(None, gt=0)


class AssignmentListResponseSchema(Schema):
    success: bool = True
    assignments: list[AssignmentSchema]
    pagination: PaginationSchema


class AssignmentResponseSchema(Schema):
    success: bool = True
    message: str
    assignment: AssignmentSchema


class AssignmentDetailResponseSchema(Schema):
    success: bool = True
    assignment: AssignmentDetailSchema


class CalendarSummarySchema(Schema):
    year: int
    month: int
    total_assignments: int
    days_with_assignments: int
    workers_scheduled: int
    workload_gini: float


class CalendarResponseSchema(Schema):
    success: bool = True
    calendar: dict[str, list[AssignmentSchema]]  # key is YYYY-MM-DD
    summary: CalendarSummarySchema


class ConflictingAssignmentSchema(Schema):
    assignment_id: int
    production_line_id: int
    production_line_name: str
    position: str


class ConflictReportEntrySchema(Schema):
    """All assignments one worker holds for the same day and shift."""
    worker_id: int
    date: dt.date
    shift: Shift
    assignments: list[ConflictingAssignmentSchema]
    worker: WorkerBriefSchema | None


class DateRangeSchema(Schema):
    start_date: dt.date
    end_date: dt.date


class ConflictReportSummarySchema(Schema):
    total_conflicts: int
    date_range: DateRangeSchema


class ConflictReportResponseSchema(Schema):
    success: bool = True
    conflicts: list[ConflictReportEntrySchema]
    summary: ConflictReportSummarySchema
