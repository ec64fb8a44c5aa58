from __future__ import annotations

from typing import List

from ..models import ContentWindow


def chunk_document(content: str, max_chars: int, max_chunks: int = 3) -> List[ContentWindow]:
    """
    Sample a page into at most `max_chunks` windows of at most `max_chars`.

    Show listings tend to sit near the structural edges of a page (header
    calendars, footer lists, A-Z state sections), so we sample instead of
    covering everything:

      - always the start
      - the middle, once the page is longer than 2 windows
      - the end, once the page is longer than 3 windows

    Pages longer than max_chunks * max_chars keep un-sampled regions.
    """
    if max_chars <= 0 or max_chunks <= 0:
        return []

    length = len(content or "")
    windows: List[ContentWindow] = [ContentWindow(text=(content or "")[:max_chars], note="Document start", offset=0)]

    if length > max_chars * 2:
        mid_start = length // 2 - max_chars // 2
        windows.append(
            ContentWindow(text=content[mid_start : mid_start + max_chars], note="Document middle", offset=mid_start)
        )

    if length > max_chars * 3:
        end_start = length - max_chars
        windows.append(ContentWindow(text=content[end_start:], note="Document end", offset=end_start))

    return windows[:max_chunks]
