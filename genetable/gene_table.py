"""Gene table assembly from annotated genome records.

Two entry points accept the two shapes parsed annotations come in and
converge on the same output: one row per gene / tRNA / rRNA with columns
``chr, start, end, strand, gene, pseudo, cu_bias, gc``.

- :func:`gene_table_parsed` takes the feature-list form
  ({feature_type: [records]}), e.g. from :func:`features_from_record`.
- :func:`gene_table_read` takes a reader object with ``genes()``,
  ``other_features()`` and ``cds()`` tables, e.g. :class:`GenBankReader`.

The number of rows dropped for lack of a gene name is logged and stored in
``table.attrs["n_dropped"]``.
"""

import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd

from genetable.core.codon_usage import BIAS_COLUMNS, codon_usage
from genetable.core.features import extract_features
from genetable.core.gc import add_gc_column
from genetable.core.names import canonicalize_names, resolve_names

logger = logging.getLogger(__name__)

CHROMOSOME = "chr1"
GENE_TYPES = ("gene", "tRNA", "rRNA")
SUPPLEMENTARY_TYPES = ("rRNA", "tRNA")
OUTPUT_COLUMNS = ["chr", "start", "end", "strand", "gene", "pseudo", "cu_bias", "gc"]

_JOIN_KEYS = ["gene", "strand", "start"]


# ═══════════════════════════════════════════════════════════════════════════════
# Entry points
# ═══════════════════════════════════════════════════════════════════════════════

def gene_table_parsed(
    features: Mapping,
    genome,
    stop_rm: bool = False,
) -> pd.DataFrame:
    """Build the gene table from per-type feature lists.

    Args:
        features: {feature_type: list of feature dicts or DataFrame}.  Each
            record has start/end/strand and optionally type, gene, pseudo,
            product.
        genome: Genome sequence (str or Bio.Seq).
        stop_rm: Leave stop codons out of the MILC statistic.

    Returns:
        Gene table sorted by start (ascending) then end (descending).  No
        two rows share (start, strand, gene) or (end, strand, gene); among
        overlapping duplicates the earliest-starting, longest one is kept.
    """
    info = extract_features(features)
    info = resolve_names(info, fallback="product")
    info["pseudo"] = _as_pseudo(info["pseudo"])
    info["gene"] = canonicalize_names(info["gene"])

    table = info.loc[info["type"].isin(GENE_TYPES), ["start", "end", "strand", "gene", "pseudo"]]
    table, n_dropped = _drop_incomplete(table)
    table = table.drop_duplicates()
    table["chr"] = CHROMOSOME

    table = table.sort_values(["start", "end"], ascending=[True, False], kind="mergesort")
    n_before = len(table)
    table = table.drop_duplicates(["start", "strand", "gene"], keep="first")
    table = table.drop_duplicates(["end", "strand", "gene"], keep="first")
    logger.info(
        "Removed %d overlapping duplicate annotations (%d rows remain)",
        n_before - len(table), len(table),
    )

    cds = info[info["type"] == "CDS"]
    bias = codon_usage(cds, genome, stop_rm=stop_rm)
    table = attach_bias(table, bias)
    table = add_gc_column(genome, table)
    return _finish(table, n_dropped)


def gene_table_read(reader, genome=None, stop_rm: bool = False) -> pd.DataFrame:
    """Build the gene table from a reader object.

    Genes come from ``reader.genes()``; tRNA/rRNA features from
    ``reader.other_features()`` are added only when their gene name is not
    already among the genes.  Only exact duplicate rows are removed (there
    is no start/end tie-break pass as in :func:`gene_table_parsed`).

    Args:
        reader: Object exposing ``genes()``, ``other_features()`` and
            ``cds()`` DataFrames (see :class:`GenBankReader`).
        genome: Genome sequence.  Defaults to ``reader.sequence``.
        stop_rm: Leave stop codons out of the MILC statistic.
    """
    if genome is None:
        genome = getattr(reader, "sequence", None)
        if genome is None:
            raise ValueError("No genome sequence given and reader has no .sequence")

    genes = reader.genes()
    if "gene_id" in genes.columns:
        genes = resolve_names(genes, fallback="gene_id")
    else:
        genes = resolve_names(genes, fallback=None)
    if "pseudo" not in genes.columns:
        genes["pseudo"] = False
    genes["pseudo"] = _as_pseudo(genes["pseudo"])

    features = reader.other_features().copy()
    features["pseudo"] = False
    features = features[features["type"].isin(SUPPLEMENTARY_TYPES)]
    features = features[~features["gene"].isin(genes["gene"].dropna())]
    features = resolve_names(features, fallback="product")
    logger.info(
        "Gene table sources: %d genes, %d supplementary RNA features",
        len(genes), len(features),
    )

    cols = ["start", "end", "gene", "strand", "pseudo"]
    table = pd.concat([genes[cols], features[cols]], ignore_index=True)
    table["chr"] = CHROMOSOME
    table, n_dropped = _drop_incomplete(table)
    table = table[["chr", "start", "end", "gene", "strand", "pseudo"]].drop_duplicates()
    table["gene"] = canonicalize_names(table["gene"])

    cds = resolve_names(reader.cds(), fallback="product")
    cds["gene"] = canonicalize_names(cds["gene"])
    bias = codon_usage(cds, genome, stop_rm=stop_rm)
    table = attach_bias(table, bias)
    table = add_gc_column(genome, table)
    return _finish(table, n_dropped)


# ═══════════════════════════════════════════════════════════════════════════════
# Shared steps
# ═══════════════════════════════════════════════════════════════════════════════

def attach_bias(table: pd.DataFrame, bias: pd.DataFrame) -> pd.DataFrame:
    """Left-join codon usage bias onto the gene table by (gene, strand, start).

    Rows without a matching coding sequence (tRNA, rRNA, genes without CDS)
    get NaN.  An empty *bias* table yields an all-NaN ``cu_bias`` column.
    """
    if bias is None or len(bias) == 0:
        table = table.copy()
        table["cu_bias"] = np.nan
        return table

    bias = bias[BIAS_COLUMNS].drop_duplicates(_JOIN_KEYS, keep="first")
    bias = bias.astype({"start": "int64", "cu_bias": "float64"})
    merged = table.merge(bias, on=_JOIN_KEYS, how="left", validate="many_to_one")
    logger.info(
        "Codon usage bias attached to %d of %d rows",
        int(merged["cu_bias"].notna().sum()), len(merged),
    )
    return merged


def _as_pseudo(values: pd.Series) -> pd.Series:
    """Null pseudogene flags default to False."""
    return values.map(lambda v: False if v is None or pd.isna(v) else bool(v)).astype(bool)


def _drop_incomplete(table: pd.DataFrame) -> tuple[pd.DataFrame, int]:
    """Drop rows with any null; returns the table and the unnamed-row count."""
    unnamed = table["gene"].isna()
    n_unnamed = int(unnamed.sum())
    if n_unnamed:
        logger.warning(
            "Dropped %d features with no resolvable gene name", n_unnamed,
        )
    complete = table.dropna()
    n_other = len(table) - len(complete) - n_unnamed
    if n_other:
        logger.warning("Dropped %d features with missing coordinates or strand", n_other)
    complete = complete.astype({"start": "int64", "end": "int64"})
    return complete, n_unnamed


def _finish(table: pd.DataFrame, n_dropped: int) -> pd.DataFrame:
    table = table[OUTPUT_COLUMNS].reset_index(drop=True)
    table.attrs["n_dropped"] = n_dropped
    logger.info("Gene table: %d rows", len(table))
    return table
