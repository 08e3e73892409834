from django.http import HttpRequest
from ninja import Query, Router

from factory_floor.exceptions import parse_id
from factory_floor.schemas import MessageResponseSchema
from .schemas import (
    AssignmentCreateSchema, AssignmentDetailResponseSchema, AssignmentFilterSchema,
    AssignmentListResponseSchema, AssignmentResponseSchema, AssignmentUpdateSchema,
    CalendarQuerySchema, CalendarResponseSchema, ConflictReportResponseSchema,
)
from .services import AssignmentQueryService, AssignmentService

router = Router()


@router.get("/calendar", response=CalendarResponseSchema)
def get_assignments_calendar(request: HttpRequest, params: Query[CalendarQuerySchema]):
    """
    Get one month of assignments grouped by day (``YYYY-MM-DD`` keys), ordered
    by date and shift, optionally restricted to a worker or production line.
    """
    calendar, summary = AssignmentQueryService.get_calendar(
        params.year, params.month,
        worker_id=params.worker_id,
        production_line_id=params.production_line_id,
    )
    return {"success": True, "calendar": calendar, "summary": summary}


@router.get("/conflicts", response=ConflictReportResponseSchema)
def get_assignment_conflicts(request: HttpRequest, start_date: str | None = None, end_date: str | None = None):
    """
    Audit report of workers booked more than once for the same day and shift.

    Both bounds are inclusive and default to the current calendar month.
    """
    start, end = AssignmentQueryService.report_range(start_date, end_date)
    conflicts = AssignmentQueryService.get_conflict_report(start, end)
    return {
        "success": True,
        "conflicts": conflicts,
        "summary": {
            "total_conflicts": len(conflicts),
            "date_range": {"start_date": start, "end_date": end},
        },
    }


@router.get("/", response=AssignmentListResponseSchema)
def list_assignments(request: HttpRequest, filters: Query[AssignmentFilterSchema]):
    """Paginated assignments, most recent date first."""
    assignments, pagination = AssignmentQueryService.list_assignments(filters.model_dump())
    return {"success": True, "assignments": assignments, "pagination": pagination}


@router.post("/", response={201: AssignmentResponseSchema})
def create_assignment(request: HttpRequest, payload: AssignmentCreateSchema):
    """
    Create an assignment after checking that the worker and production line
    exist, that the line is active and that the worker is free that day and shift.
    """
    assignment = AssignmentService.create_assignment(payload.model_dump())
    return 201, {"success": True, "message": "Assignment created successfully", "assignment": assignment}


@router.get("/{assignment_id}", response=AssignmentDetailResponseSchema)
def get_assignment(request: HttpRequest, assignment_id: str):
    assignment = AssignmentQueryService.get_assignment(parse_id(assignment_id, "assignment"))
    return {"success": True, "assignment": assignment}


@router.put("/{assignment_id}", response=AssignmentResponseSchema)
def update_assignment(request: HttpRequest, assignment_id: str, payload: AssignmentUpdateSchema):
    assignment = AssignmentService.update_assignment(
        parse_id(assignment_id, "assignment"), payload.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Assignment updated successfully", "assignment": assignment}


@router.delete("/{assignment_id}", response=MessageResponseSchema)
def delete_assignment(request: HttpRequest, assignment_id: str):
    AssignmentService.delete_assignment(parse_id(assignment_id, "assignment"))
    return {"success": True, "message": "Assignment deleted successfully"}
