"""Shared schema building blocks."""
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    Paginated list envelope.

    has_full_access tells the client whether identity fields were redacted.
    """
    items: list[T]
    total: int
    skip: int
    limit: int
    has_full_access: bool
