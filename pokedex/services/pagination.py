"""Pagination rules for the browse and search modes.

Pure functions of the current view state; the engine owns all mutation.

Browse mode derives the next page from the accumulated list length, so it
self-corrects after an irregular append. Search mode keeps an explicit
cursor because a resumed search cannot trust the list length.
"""

import logging

from pokedex.domain.models import PAGE_SIZE, Ready, ViewState

logger = logging.getLogger(__name__)


def next_page(state: ViewState, page_size: int = PAGE_SIZE) -> int:
    """Compute the page index to request next.

    Args:
        state: Current view state
        page_size: Rows per page

    Returns:
        1-based page index; 1 when nothing is loaded yet

    Example:
        >>> next_page(Ready(items=tuple(items_137)))  # 137 // 50 + 1
        3
    """
    if not isinstance(state, Ready) or not state.items:
        return 1

    if state.is_search_mode:
        return state.search_page_cursor + 1

    return len(state.items) // page_size + 1


def is_exhausted(batch_len: int, page_size: int = PAGE_SIZE) -> bool:
    """A short batch means no further pages exist."""
    return batch_len < page_size


def can_load_more(state: ViewState) -> bool:
    """Check if a LoadMore would issue a fetch from this state."""
    return isinstance(state, Ready) and not state.exhausted


def check_batch_alignment(total_len: int, page_size: int, exhausted: bool) -> bool:
    """Flag browse lists whose length no longer lines up with page boundaries.

    The browse page formula assumes every non-final batch is exactly one
    page. An oversized batch shifts every later offset.

    Args:
        total_len: Accumulated list length after an append
        page_size: Rows per page
        exhausted: Whether the last batch was terminal

    Returns:
        True if aligned (or terminal), False if misaligned
    """
    if exhausted or total_len % page_size == 0:
        return True

    logger.warning(
        f"Browse list length {total_len} is not a multiple of page size "
        f"{page_size} but more data is expected; next page offsets may be wrong"
    )
    return False
