"""Minimal pagination container used by the account listings."""

from dataclasses import dataclass, field
from typing import Any, List, Tuple

from flask import request


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    page: int = 1
    per_page: int = 10
    total: int = 0

    @property
    def pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return max(1, -(-self.total // self.per_page))

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def prev_num(self) -> int:
        return max(1, self.page - 1)

    @property
    def next_num(self) -> int:
        return min(self.pages, self.page + 1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def page_args(default_per_page: int) -> Tuple[int, int]:
    """Read ``page`` from the query string, clamped to 1 or more."""
    page = request.args.get('page', 1, type=int) or 1
    return max(1, page), default_per_page
