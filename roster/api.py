from django.http import HttpRequest
from ninja import File, Query, Router, UploadedFile

from factory_floor.exceptions import parse_id
from factory_floor.pagination import paginate
from factory_floor.schemas import MessageResponseSchema
from .schemas import (
    ProductionLineCreateSchema, ProductionLineDetailResponseSchema,
    ProductionLineListResponseSchema, ProductionLineResponseSchema, ProductionLineUpdateSchema,
    WorkerCreateSchema, WorkerDetailResponseSchema, WorkerImportResponseSchema,
    WorkerListQuerySchema, WorkerListResponseSchema, WorkerResponseSchema, WorkerUpdateSchema,
)
from .services import ProductionLineService, WorkerImportService, WorkerService

workers_router = Router()
lines_router = Router()


@workers_router.get("/", response=WorkerListResponseSchema)
def list_workers(request: HttpRequest, params: Query[WorkerListQuerySchema]):
    """List the worker roster, newest first, with assignment counts."""
    workers, pagination = paginate(WorkerService.get_workers(), params.page, params.limit)
    return {"success": True, "workers": workers, "pagination": pagination}


@workers_router.post("/", response={201: WorkerResponseSchema})
def create_worker(request: HttpRequest, payload: WorkerCreateSchema):
    worker = WorkerService.create_worker(payload.model_dump())
    return 201, {"success": True, "message": "Worker created successfully", "worker": worker}


@workers_router.post("/import", response=WorkerImportResponseSchema)
def import_workers(request: HttpRequest,
                   csv: UploadedFile | None = File(None), file: UploadedFile | None = File(None)):
    """
    Import workers from a CSV upload (multipart field ``csv``, or ``file``)
    with ``name`` and ``cin`` columns and optional ``email``, ``phone`` and
    ``role`` columns.

    Valid rows are created; invalid or duplicate rows are reported in
    ``results.errors`` without aborting the import.
    """
    upload = WorkerImportService.pick_upload(csv, file)
    WorkerImportService.check_upload(upload.content_type, upload.size, upload.name)
    results = WorkerImportService.import_workers(upload.read())
    return {
        "success": True,
        "message": (
            f"Import completed. {len(results['success'])} workers imported, "
            f"{len(results['errors'])} errors"
        ),
        "results": results,
    }


@workers_router.get("/{worker_id}", response=WorkerDetailResponseSchema)
def get_worker(request: HttpRequest, worker_id: str):
    worker = WorkerService.get_worker(parse_id(worker_id, "worker"))
    return {"success": True, "worker": worker}


@workers_router.put("/{worker_id}", response=WorkerResponseSchema)
def update_worker(request: HttpRequest, worker_id: str, payload: WorkerUpdateSchema):
    worker = WorkerService.update_worker(
        parse_id(worker_id, "worker"), payload.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Worker updated successfully", "worker": worker}


@workers_router.delete("/{worker_id}", response=MessageResponseSchema)
def delete_worker(request: HttpRequest, worker_id: str):
    WorkerService.delete_worker(parse_id(worker_id, "worker"))
    return {"success": True, "message": "Worker deleted successfully"}


@lines_router.get("/", response=ProductionLineListResponseSchema)
def list_production_lines(request: HttpRequest):
    """All production lines by name, with the number of assignments scheduled today."""
    lines = list(ProductionLineService.get_production_lines())
    return {"success": True, "production_lines": lines}


@lines_router.post("/", response={201: ProductionLineResponseSchema})
def create_production_line(request: HttpRequest, payload: ProductionLineCreateSchema):
    line = ProductionLineService.create_production_line(payload.model_dump())
    return 201, {"success": True, "message": "Production line created", "production_line": line}


@lines_router.get("/{line_id}", response=ProductionLineDetailResponseSchema)
def get_production_line(request: HttpRequest, line_id: str):
    line = ProductionLineService.get_production_line(parse_id(line_id, "production line"))
    return {"success": True, "production_line": line}


@lines_router.put("/{line_id}", response=ProductionLineResponseSchema)
def update_production_line(request: HttpRequest, line_id: str, payload: ProductionLineUpdateSchema):
    line = ProductionLineService.update_production_line(
        parse_id(line_id, "production line"), payload.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Production line updated", "production_line": line}


@lines_router.patch("/{line_id}/toggle", response=ProductionLineResponseSchema)
def toggle_production_line(request: HttpRequest, line_id: str):
    line = ProductionLineService.toggle_production_line(parse_id(line_id, "production line"))
    state = "active" if line.is_active else "inactive"
    return {"success": True, "message": f"Production line is now {state}", "production_line": line}


@lines_router.delete("/{line_id}", response=MessageResponseSchema)
def delete_production_line(request: HttpRequest, line_id: str):
    ProductionLineService.delete_production_line(parse_id(line_id, "production line"))
    return {"success": True, "message": "Production line deleted"}
