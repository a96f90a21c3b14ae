"""Per-gene codon usage bias (MILC) for annotated coding sequences.

Fragmented annotations list one CDS record per exon/part.  Consecutive
records of the same gene on the same strand are stitched together into one
transcript before scoring, and the group is reported at its first record's
start.  Each strand is scored as its own set, so the pooled reference
usage of a strand only includes that strand's genes.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from Bio.Seq import Seq

from genetable.core.milc import milc_scores

logger = logging.getLogger(__name__)

BIAS_COLUMNS = ["cu_bias", "gene", "start", "strand"]
STRANDS = ("+", "-")


class MalformedCodingRecordsError(ValueError):
    """Coding records whose coordinates cannot be extracted from the genome."""


@dataclass
class CodingGroup:
    """One logical coding sequence assembled from consecutive CDS records."""

    gene: str
    strand: str
    start: int
    parts: list = field(default_factory=list)

    @property
    def sequence(self) -> Seq:
        seq = Seq("")
        for part in self.parts:
            seq += part
        if self.strand == "-":
            seq = seq.reverse_complement()
        return seq

    def __len__(self) -> int:
        return sum(len(p) for p in self.parts)


def as_seq(genome) -> Seq:
    """Coerce a genome given as str or Bio.Seq to an upper-case Seq."""
    if isinstance(genome, Seq):
        return genome.upper()
    return Seq(str(genome).upper())


def _subsequence(genome: Seq, start, end, gene: str) -> Seq:
    if pd.isna(start) or pd.isna(end):
        raise MalformedCodingRecordsError(
            f"CDS {gene!r} is missing coordinates (start={start}, end={end})"
        )
    start, end = int(start), int(end)
    if start < 1 or end > len(genome) or start > end:
        raise MalformedCodingRecordsError(
            f"CDS {gene!r} at {start}-{end} lies outside the "
            f"{len(genome)} bp genome or has start > end"
        )
    return genome[start - 1 : end]


def merge_split_cds(cds: pd.DataFrame, genome, strand: str) -> list[CodingGroup]:
    """Group consecutive same-gene CDS records of one strand.

    Records are taken in the order given (file order), never re-sorted.
    A gene name that reappears after a different gene, or after a skipped
    unnamed record, starts a new group.

    Args:
        cds: CDS records with start/end/strand/gene columns.
        genome: Genome sequence (str or Bio.Seq), sliced as given.
        strand: "+" or "-"; records of the other strand are ignored.

    Returns:
        List of CodingGroup in encounter order.

    Raises:
        MalformedCodingRecordsError: A record's coordinates are missing or
            fall outside the genome.
    """
    records = cds[cds["strand"] == strand]
    groups: list[CodingGroup] = []
    current: CodingGroup | None = None

    for row in records.itertuples(index=False):
        gene = row.gene
        if gene is None or (not isinstance(gene, str) and pd.isna(gene)):
            logger.warning(
                "Skipping %s-strand CDS at %s-%s: no gene name", strand, row.start, row.end,
            )
            current = None
            continue
        part = _subsequence(genome, row.start, row.end, gene)
        if current is not None and current.gene == gene:
            current.parts.append(part)
            logger.debug("Merged split CDS part %s-%s into %s", row.start, row.end, gene)
            continue
        current = CodingGroup(gene=gene, strand=strand, start=int(row.start), parts=[part])
        groups.append(current)

    return groups


def strand_codon_usage(
    cds: pd.DataFrame,
    genome,
    strand: str,
    stop_rm: bool = False,
) -> pd.DataFrame | None:
    """MILC bias rows for one strand; None when the strand has no CDS."""
    groups = merge_split_cds(cds, genome, strand)
    if not groups:
        return None

    scores = milc_scores([g.sequence for g in groups], stop_rm=stop_rm)
    logger.info("Scored codon usage for %d %s-strand coding sequences", len(groups), strand)
    return pd.DataFrame({
        "cu_bias": scores.astype(np.float64),
        "gene": [g.gene for g in groups],
        "start": [g.start for g in groups],
        "strand": [strand] * len(groups),
    })


def codon_usage(cds: pd.DataFrame, genome, stop_rm: bool = False) -> pd.DataFrame:
    """Compute per-gene MILC codon usage bias for both strands.

    Args:
        cds: CDS records (start, end, strand, gene) in file order.
        genome: Genome sequence (str or Bio.Seq).
        stop_rm: Leave stop codons out of the MILC statistic.

    Returns:
        DataFrame with columns cu_bias, gene, start, strand.  Empty (with
        those columns) when there are no usable CDS records.
    """
    if cds is None or len(cds) == 0:
        logger.info("No CDS records; codon usage table is empty")
        return pd.DataFrame(columns=BIAS_COLUMNS)

    # one upper-cased copy shared by both strands
    genome = as_seq(genome)
    frames = [
        df for df in (strand_codon_usage(cds, genome, s, stop_rm=stop_rm) for s in STRANDS)
        if df is not None
    ]
    if not frames:
        return pd.DataFrame(columns=BIAS_COLUMNS)
    return pd.concat(frames, ignore_index=True)[BIAS_COLUMNS]
