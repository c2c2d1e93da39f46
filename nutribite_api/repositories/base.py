"""
Shared query plumbing for repositories: filtered listing with limit/offset
and a matching count.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from nutribite_shared.config.constants import Limits


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0
    include_deleted: bool = False
    search: str | None = None

    def __post_init__(self):
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)
        if self.search:
            self.search = self.search.strip()[: Limits.MAX_SEARCH_TERM_LENGTH] or None


class BaseRepository(ABC, Generic[ModelT]):
    """
    Subclasses provide the model, a base query (with its eager loads and
    ordering) and their own filter clauses.
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]: ...

    @abstractmethod
    def _base_query(self) -> Select: ...

    @abstractmethod
    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select: ...

    def _count_base_query(self) -> Select:
        # Counting must not carry eager loads or ORDER BY
        return select(self.model)

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[ModelT]:
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def count(self, filters: RepositoryFilters | None = None) -> int:
        """Rows matching the filters, ignoring limit and offset."""
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._count_base_query(), filters)
        return self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
