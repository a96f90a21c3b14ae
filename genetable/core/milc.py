"""MILC codon usage bias — Supek & Vlahovicek 2005.

Measure Independent of Length and Composition.  For a gene with L counted
codons::

    M_a  = 2 * sum_c O_c * ln(O_c / E_c)          (E_c = f_c * n_a)
    MILC = sum_a M_a / L - C
    C    = sum_a (r_a - 1) / L - 0.5

where ``f_c`` is the reference frequency of codon c within its synonymous
family, ``n_a`` the gene's count of amino acid a and ``r_a`` the family
size.  The correction term only sums over families present in the gene.
With no explicit reference the pooled usage of the scored set is used.
"""

import logging
from collections import defaultdict

import numpy as np
from scipy.special import xlogy

from genetable.core.codons import ALL_CODONS, CODON_TABLE, codon_count_matrix

logger = logging.getLogger(__name__)

# Floor for explicit-reference frequencies so an unseen codon keeps E_c > 0
_MIN_REF_FREQ = 1e-3

# Build AA → codon index family mapping (stops grouped under "*")
_AA_TO_INDICES: dict[str, list[int]] = defaultdict(list)
for _i, _c in enumerate(ALL_CODONS):
    _AA_TO_INDICES[CODON_TABLE[_c]].append(_i)
_AA_TO_INDICES = dict(_AA_TO_INDICES)


def _families(stop_rm: bool) -> dict[str, np.ndarray]:
    return {
        aa: np.array(idx)
        for aa, idx in _AA_TO_INDICES.items()
        if not (stop_rm and aa == "*")
    }


def reference_frequencies(
    reference_counts: np.ndarray,
    stop_rm: bool = False,
    floor: float = 0.0,
) -> np.ndarray:
    """Convert reference codon counts into within-family frequencies.

    Args:
        reference_counts: shape (64,) codon counts, ordered as ``ALL_CODONS``.
        stop_rm: Leave stop codons out of the families.
        floor: Minimum within-family frequency before renormalising.

    Returns:
        shape (64,) float array; each synonymous family sums to 1.
        Families absent from the reference get uniform frequencies.
        Excluded codons (stops with ``stop_rm``) are 0.
    """
    ref = np.asarray(reference_counts, dtype=np.float64)
    freqs = np.zeros(len(ALL_CODONS), dtype=np.float64)
    for aa, idx in _families(stop_rm).items():
        total = ref[idx].sum()
        if total == 0:
            freqs[idx] = 1.0 / len(idx)
            continue
        family = np.maximum(ref[idx] / total, floor)
        freqs[idx] = family / family.sum()
    return freqs


def milc_from_counts(
    counts: np.ndarray,
    reference_counts: np.ndarray | None = None,
    stop_rm: bool = False,
    correction: bool = True,
) -> np.ndarray:
    """Compute MILC for each row of a codon count matrix.

    Args:
        counts: shape (n_genes, 64) codon counts.
        reference_counts: shape (64,) reference codon counts.  Defaults to
            the column sums of *counts* (the set is its own reference).
        stop_rm: Exclude stop codons from the statistic.
        correction: Subtract the expected-value correction term C.

    Returns:
        shape (n_genes,) float array.  Genes with no counted codons are NaN.
    """
    counts = np.asarray(counts, dtype=np.float64)
    if counts.ndim != 2 or counts.shape[1] != len(ALL_CODONS):
        raise ValueError(
            f"Expected a (n, {len(ALL_CODONS)}) count matrix, got shape {counts.shape}"
        )
    n_genes = counts.shape[0]
    if n_genes == 0:
        return np.zeros(0, dtype=np.float64)

    floor = _MIN_REF_FREQ
    if reference_counts is None:
        reference_counts = counts.sum(axis=0)
        floor = 0.0
    freqs = reference_frequencies(reference_counts, stop_rm=stop_rm, floor=floor)

    families = _families(stop_rm)
    lengths = np.zeros(n_genes, dtype=np.float64)
    m_total = np.zeros(n_genes, dtype=np.float64)
    corr = np.zeros(n_genes, dtype=np.float64)

    for aa, idx in families.items():
        observed = counts[:, idx]                      # (n, r_a)
        n_aa = observed.sum(axis=1)                    # (n,)
        expected = freqs[idx][np.newaxis, :] * n_aa[:, np.newaxis]
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(expected > 0, observed / expected, 1.0)
        m_total += 2.0 * xlogy(observed, ratio).sum(axis=1)
        lengths += n_aa
        corr += np.where(n_aa > 0, len(idx) - 1, 0)

    with np.errstate(divide="ignore", invalid="ignore"):
        scores = m_total / lengths
        if correction:
            scores = scores - (corr / lengths - 0.5)
    scores[lengths == 0] = np.nan

    n_empty = int((lengths == 0).sum())
    if n_empty:
        logger.warning("%d of %d sequences have no countable codons", n_empty, n_genes)
    return scores


def milc_scores(
    sequences: list[str],
    reference: list[str] | None = None,
    stop_rm: bool = False,
    correction: bool = True,
) -> np.ndarray:
    """Score MILC codon usage bias for a list of coding sequences.

    Args:
        sequences: In-frame coding sequences (str or Bio.Seq).
        reference: Sequences whose pooled codon usage serves as the expected
            usage.  None = the scored sequences themselves.
        stop_rm: Exclude stop codons.
        correction: Apply the length/composition correction term.

    Returns:
        float array aligned with *sequences*.
    """
    counts = codon_count_matrix(list(sequences))
    ref_counts = None
    if reference is not None:
        ref_counts = codon_count_matrix(list(reference)).sum(axis=0)
    return milc_from_counts(
        counts, reference_counts=ref_counts, stop_rm=stop_rm, correction=correction,
    )
