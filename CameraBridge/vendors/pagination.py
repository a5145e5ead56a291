"""
Pagination Aggregation

Turns page-at-a-time vendor endpoints into complete result sets.

Termination rules:
- When the vendor reports a total, stop once the accumulated count reaches it.
- Otherwise stop at the first page shorter than page_size.
- Without a total, never run more than max_pages iterations. This ceiling
  only bounds the loop; a vendor that returns a full final page without a
  total will be under-fetched once the ceiling is hit.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

from CameraBridge.exceptions import ParameterError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 100


@dataclass
class PageCursor:
    """Position of one aggregation run"""
    page_size: int
    page_number: int = 1
    offset: int = 0
    accumulated: int = 0
    declared_total: Optional[int] = None
    iterations: int = 0


@dataclass
class Page:
    """One page as returned by a vendor endpoint"""
    items: List[Any] = field(default_factory=list)
    total: Optional[int] = None


def parse_total(value: Any) -> Optional[int]:
    """Vendors report totals as ints, numeric strings, or not at all"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value == value:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


async def collect_all(
    fetch_page: Callable[[PageCursor], Awaitable[Page]],
    page_size: int,
    max_pages: int = DEFAULT_MAX_PAGES,
    first_page: int = 1,
) -> List[Any]:
    """
    Repeatedly call fetch_page and return every item it produced.

    fetch_page receives the cursor for the page to request (page_number and
    offset are both maintained) and returns a Page. Errors raised by
    fetch_page propagate unchanged.
    """
    if page_size <= 0:
        raise ParameterError("page_size must be positive", parameter_name="page_size", parameter_value=page_size)
    if max_pages <= 0:
        raise ParameterError("max_pages must be positive", parameter_name="max_pages", parameter_value=max_pages)

    cursor = PageCursor(page_size=page_size, page_number=first_page)
    items: List[Any] = []

    while True:
        page = await fetch_page(cursor)
        cursor.iterations += 1

        page_items = list(page.items or [])
        items.extend(page_items)
        cursor.accumulated = len(items)
        cursor.declared_total = page.total

        if page.total is not None:
            if cursor.accumulated >= page.total:
                break
            if not page_items:
                logger.warning(
                    f"Empty page {cursor.page_number} before reaching declared total "
                    f"({cursor.accumulated}/{page.total}), stopping"
                )
                break
        elif len(page_items) < page_size:
            break
        elif cursor.iterations >= max_pages:
            logger.warning(f"Pagination stopped at the {max_pages} page ceiling with {cursor.accumulated} items")
            break

        cursor.page_number += 1
        cursor.offset += page_size

    logger.debug(f"Collected {len(items)} items in {cursor.iterations} pages")
    return items
