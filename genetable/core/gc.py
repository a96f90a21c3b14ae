"""Per-gene GC content."""

import logging

import pandas as pd

logger = logging.getLogger(__name__)


def gc_content(genome, start: int, end: int) -> float:
    """GC fraction of the 1-based inclusive span [start, end] of *genome*.

    G and C are counted case-insensitively over the full span length, so
    ambiguous bases lower the fraction.

    Raises:
        ValueError: The span is empty or not inside the genome
            (``1 <= start <= end <= len(genome)`` does not hold).
    """
    start, end = int(start), int(end)
    if start < 1 or end > len(genome) or start > end:
        raise ValueError(
            f"Span {start}-{end} lies outside the {len(genome)} bp genome "
            f"or has start > end"
        )
    span = str(genome[start - 1 : end]).upper()
    gc_count = span.count("G") + span.count("C")
    return gc_count / len(span)


def add_gc_column(genome, table: pd.DataFrame, column: str = "gc") -> pd.DataFrame:
    """Return a copy of *table* with the GC fraction of each row's span.

    GC fraction is strand-independent, so ``strand`` is not consulted.
    """
    table = table.copy()
    table[column] = pd.Series(
        [gc_content(genome, s, e) for s, e in zip(table["start"], table["end"])],
        index=table.index,
        dtype="float64",
    )
    logger.debug("Computed GC content for %d rows", len(table))
    return table
