import math
from dataclasses import dataclass, field
from typing import Generic, Literal, Sequence, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

SortDirection = Literal["asc", "desc"]


class PageContext(BaseModel, Generic[T]):
    """
    Paging request: the filter payload plus zero-based paging and sorting.

    `data` is the filter example handed to QueryRepository.find_page.
    """

    data: T | None = None
    page_number: int = Field(default=0, ge=0)
    page_size: int = Field(default=20, ge=1, le=1000)
    sort_by: str | None = None
    sort_dir: SortDirection = "asc"
    filter_type: str | None = None


@dataclass
class PageResult(Generic[T]):
    """One page of results. `page_number` is zero-based."""

    content: list[T] = field(default_factory=list)
    page_number: int = 0
    page_size: int = 20
    total_elements: int = 0

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_elements / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page_number + 1 < self.total_pages


def paginate_list(items: Sequence[T], page_number: int, page_size: int) -> list[T]:
    """Slice one zero-based page out of `items`; past the end gives []."""
    if page_size <= 0 or page_number < 0:
        return []
    start = page_number * page_size
    return list(items[start:start + page_size])


__all__ = ["PageContext", "PageResult", "SortDirection", "paginate_list"]
