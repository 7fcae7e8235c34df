"""
Relevance filtering of logical lines.

Only lines mentioning a product or record keyword are worth sending to the AI
service or scanning for record fields.
"""

import logging
from typing import List, Iterable, Sequence

from extraction.models import LogicalLine


logger = logging.getLogger(__name__)


def is_relevant(line: LogicalLine, keywords: Iterable[str]) -> bool:
    """A line is relevant when it contains at least one keyword."""
    return any(keyword and keyword in line.text for keyword in keywords)


def filter_relevant(lines: Sequence[LogicalLine], keywords: Sequence[str]) -> List[LogicalLine]:
    """
    Keep the lines that contain at least one keyword.

    Order and original line indices are preserved.

    Args:
        lines: Reconstructed logical lines
        keywords: Category phrases, brand tags and record marker prefixes

    Returns:
        Relevant lines in their original order
    """
    relevant = [line for line in lines if is_relevant(line, keywords)]
    logger.debug(f"Relevance filter kept {len(relevant)} of {len(lines)} lines")
    return relevant
