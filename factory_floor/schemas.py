from ninja import Schema


class PaginationSchema(Schema):
    """Pagination block attached to every paginated list response."""
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


class MessageResponseSchema(Schema):
    success: bool = True
    message: str
