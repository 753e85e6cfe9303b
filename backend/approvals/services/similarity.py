"""Advisory duplicate checking for research-topic titles."""
from typing import Iterable

from approvals.config import settings


def find_similar(existing_titles: Iterable[str], candidate: str, min_length: int | None = None) -> list[str]:
    """Titles that contain ``candidate`` or are contained in it.

    Case-sensitive. Candidates shorter than ``min_length`` are never
    compared, so trivially short input raises no warnings.
    """
    threshold = settings.SIMILARITY_MIN_LENGTH if min_length is None else min_length
    if candidate is None or len(candidate) < threshold:
        return []
    matches = []
    for title in existing_titles:
        if not title:
            continue
        if candidate in title or title in candidate:
            if title not in matches:
                matches.append(title)
    return matches
