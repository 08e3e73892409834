from django.http import HttpRequest
from ninja import Query, Router

from factory_floor.exceptions import parse_id
from factory_floor.schemas import MessageResponseSchema
from .schemas import (
    AnalyticsQuerySchema, AnalyticsResponseSchema, PerformanceFilterSchema,
    PerformanceRecordCreateSchema, PerformanceRecordDetailResponseSchema,
    PerformanceRecordListResponseSchema, PerformanceRecordResponseSchema,
    PerformanceRecordUpdateSchema,
)
from .services import PerformanceAnalyticsService, PerformanceRecordService

router = Router()


@router.get("/analytics", response=AnalyticsResponseSchema)
def get_performance_analytics(request: HttpRequest, params: Query[AnalyticsQuerySchema]):
    """
    Totals and averages for the window, grouped by date, worker, product
    or production line. The window defaults to the current calendar month.
    """
    start, end = PerformanceAnalyticsService.resolve_range(params.start_date, params.end_date)
    analytics = PerformanceAnalyticsService.get_analytics(
        start, end,
        group_by=params.group_by,
        worker_id=params.worker_id,
        production_line_id=params.production_line_id,
    )
    return {"success": True, "analytics": analytics}


@router.get("/", response=PerformanceRecordListResponseSchema)
def list_performance_records(request: HttpRequest, filters: Query[PerformanceFilterSchema]):
    records, pagination = PerformanceRecordService.list_records(filters.model_dump())
    return {"success": True, "performance_records": records, "pagination": pagination}


@router.post("/", response={201: PerformanceRecordResponseSchema})
def create_performance_record(request: HttpRequest, payload: PerformanceRecordCreateSchema):
    record = PerformanceRecordService.create_record(payload.model_dump())
    return 201, {
        "success": True,
        "message": "Performance record created successfully",
        "performance_record": record,
    }


@router.get("/{record_id}", response=PerformanceRecordDetailResponseSchema)
def get_performance_record(request: HttpRequest, record_id: str):
    record = PerformanceRecordService.get_record(parse_id(record_id, "performance record"))
    return {"success": True, "performance_record": record}


@router.put("/{record_id}", response=PerformanceRecordResponseSchema)
def update_performance_record(request: HttpRequest, record_id: str,
                              payload: PerformanceRecordUpdateSchema):
    record = PerformanceRecordService.update_record(
        parse_id(record_id, "performance record"), payload.model_dump(exclude_unset=True)
    )
    return {
        "success": True,
        "message": "Performance record updated successfully",
        "performance_record": record,
    }


@router.delete("/{record_id}", response=MessageResponseSchema)
def delete_performance_record(request: HttpRequest, record_id: str):
    PerformanceRecordService.delete_record(parse_id(record_id, "performance record"))
    return {"success": True, "message": "Performance record deleted successfully"}
