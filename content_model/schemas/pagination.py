from typing import Any

from pydantic import BaseModel, Field


class PageInfo(BaseModel):
    """Page window computed for a paginated query"""

    total: int = Field(..., description="Number of matching records.")
    current_page: int
    total_pages: int
    pages: list[int] = Field(default_factory=list, description="Page numbers inside the window.")
    previous: int | None = None
    next: int | None = None
    first: int = Field(..., description="1-based index of the first record on this page, 0 when empty.")
    last: int = Field(..., description="1-based index of the last record on this page.")


class PaginatedResult(PageInfo):
    """A page of records plus its window"""

    results: list[dict[str, Any]] = Field(default_factory=list)
