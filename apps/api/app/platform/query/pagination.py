from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def normalize(cls, page: int | None = None, page_size: int | None = None) -> PageRequest:
        resolved_page = page if page is not None and page >= 1 else 1
        if page_size is None:
            resolved_size = DEFAULT_PAGE_SIZE
        else:
            resolved_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        return cls(page=resolved_page, page_size=resolved_size)

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, items: list[T], total: int, request: PageRequest) -> "Page[T]":
        return cls(
            items=items,
            total=total,
            page=request.page,
            page_size=request.page_size,
            total_pages=total_pages(total, request.page_size),
        )
