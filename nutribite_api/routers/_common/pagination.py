"""
limit/offset pagination shared by list endpoints.

    @router.get("/api/menu")
    def list_menu(pagination: Pagination = Depends(get_pagination)):
        rows = query.offset(pagination.offset).limit(pagination.limit)
"""

from dataclasses import dataclass

from fastapi import Query

from nutribite_shared.config.constants import Limits


@dataclass
class Pagination:
    limit: int
    offset: int
    max_limit: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        # Callers outside FastAPI (CLI, services) skip Query validation
        self.limit = min(max(1, self.limit), self.max_limit)
        self.offset = max(0, self.offset)


def get_pagination(
    limit: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Page size",
    ),
    offset: int = Query(default=0, ge=0, description="Rows to skip"),
) -> Pagination:
    return Pagination(limit=limit, offset=offset)
