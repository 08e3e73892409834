import math

from django.db.models import QuerySet

from .schemas import PaginationSchema


def paginate(queryset: QuerySet, page: int, limit: int) -> tuple[list, PaginationSchema]:
    """Slice ``queryset`` to one page and build the matching pagination block."""
    total_count = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])

    return items, PaginationSchema(
        current_page=page,
        total_pages=math.ceil(total_count / limit),
        total_count=total_count,
        has_next=offset + len(items) < total_count,
        has_prev=page > 1,
    )
