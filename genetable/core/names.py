"""Gene name canonicalization for rRNA and tRNA annotations.

Annotation files name the same RNA genes many ways ("16S ribosomal RNA",
"rrn16S", "tRNA-Leu", "trnL-UAA").  These rules fold them onto the
chloroplast/mitochondrial convention ``rrn<size>`` and ``trn<one-letter>``.
"""

import logging
import re

import pandas as pd

logger = logging.getLogger(__name__)

# "<letters><size>S<anything>", e.g. "16S ribosomal RNA", "23.5S rRNA"
_RRN_TRIGGER_RE = re.compile(r".*([0-9.]+)S.*")
_RRN_REWRITE_RE = re.compile(r"[a-zA-Z]*([0-9.]*)S.*")

_TRN_TRIGGER_RE = re.compile(r"^trn", re.IGNORECASE)
_TRN_PREFIX_RE = re.compile(r"^tRNA")
_TRN_TRUNCATE_RE = re.compile(r"(trnf*[A-Z]).*")

# Applied in order, first occurrence only.  "He" (not "Ile") is kept as
# found in the reference table; "Ile" names still end up as trnI because
# truncation keeps the capital I.
AA_TABLE: list[tuple[str, str]] = [
    ("Ala", "A"), ("Arg", "R"), ("Asn", "N"), ("Asp", "D"), ("Cys", "C"),
    ("Glu", "E"), ("Gln", "Q"), ("Gly", "G"), ("His", "H"), ("He", "I"),
    ("Leu", "L"), ("Lys", "K"), ("Met", "M"), ("Phe", "F"), ("Pro", "P"),
    ("Ser", "S"), ("Thr", "T"), ("Trp", "W"), ("Tyr", "Y"), ("Val", "V"),
]


def is_rrn(name) -> bool:
    return isinstance(name, str) and _RRN_TRIGGER_RE.match(name) is not None


def is_trn(name) -> bool:
    return isinstance(name, str) and _TRN_TRIGGER_RE.match(name) is not None


def fix_rrn(name: str) -> str:
    """Rewrite an rRNA name to ``rrn<size>``.

    >>> fix_rrn("16S ribosomal RNA")
    'rrn16'
    >>> fix_rrn("23.5S rRNA")
    'rrn23.5'
    """
    return "rrn" + _RRN_REWRITE_RE.sub(r"\1", name, count=1)


def fix_trn(name: str) -> str:
    """Rewrite a tRNA name to ``trn[f]<one-letter amino acid>``.

    >>> fix_trn("trnA-Ala")
    'trnA'
    >>> fix_trn("tRNA-Leu")
    'trnL'
    """
    name = name.replace("-", "")
    name = _TRN_PREFIX_RE.sub("trn", name, count=1)
    for three, one in AA_TABLE:
        name = name.replace(three, one, 1)
    return _TRN_TRUNCATE_RE.sub(r"\1", name, count=1)


def canonicalize(name):
    """Canonicalize one gene name; None/NaN and ordinary names pass through."""
    if is_rrn(name):
        name = fix_rrn(name)
    if is_trn(name):
        name = fix_trn(name)
    return name


def canonicalize_names(genes: pd.Series) -> pd.Series:
    """Vectorised :func:`canonicalize` over a Series of gene names."""
    fixed = genes.map(canonicalize)
    n_changed = int((fixed.fillna("") != genes.fillna("")).sum())
    logger.debug("Canonicalized %d of %d gene names", n_changed, len(genes))
    return fixed


def resolve_names(df: pd.DataFrame, fallback: str | None = "product") -> pd.DataFrame:
    """Fill missing ``gene`` values from another column (``product`` by default).

    Empty or whitespace-only names count as missing.  Returns a copy.
    """
    df = df.copy()
    if "gene" not in df.columns:
        df["gene"] = None
    genes = df["gene"].astype(object)
    genes = genes.where(~genes.map(_is_blank), None)
    if fallback is not None and fallback in df.columns:
        fill = df[fallback].astype(object)
        fill = fill.where(~fill.map(_is_blank), None)
        genes = genes.where(genes.notna(), fill)
    df["gene"] = genes
    return df


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return bool(pd.isna(value))
