"""Adapters from Biopython GenBank records to the two annotation input forms.

``features_from_record`` gives the feature-list form ({type: [records]})
consumed by :func:`genetable.gene_table.gene_table_parsed`;
``GenBankReader`` gives the reader-object form (genes / other features /
CDS tables) consumed by :func:`genetable.gene_table.gene_table_read`.
Parsing the file itself is left to ``Bio.SeqIO``.
"""

import logging
from collections import defaultdict
from pathlib import Path

import pandas as pd
from Bio import SeqIO
from Bio.SeqRecord import SeqRecord

logger = logging.getLogger(__name__)

# Not reported by GenBankReader.other_features()
_NON_OTHER_TYPES = {"gene", "CDS", "exon", "source"}

_STRAND_SYMBOLS = {1: "+", -1: "-"}


def read_genbank(path: str | Path, record_id: str | None = None) -> SeqRecord:
    """Load one record from a GenBank file.

    Args:
        path: GenBank flat file.
        record_id: Record id/name to pick; None = the first record.

    Raises:
        FileNotFoundError: *path* does not exist.
        ValueError: The file holds no (matching) record.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"GenBank file not found: {path}")

    for record in SeqIO.parse(str(path), "genbank"):
        if record_id is None or record_id in (record.id, record.name):
            logger.info(
                "Loaded record %s (%d bp, %d features) from %s",
                record.id, len(record.seq), len(record.features), path,
            )
            return record
    if record_id is None:
        raise ValueError(f"No GenBank records in {path}")
    raise ValueError(f"Record {record_id!r} not found in {path}")


def _qualifier(feature, key: str):
    values = feature.qualifiers.get(key)
    if not values:
        return None
    return values[0]


def _is_pseudo(feature) -> bool | None:
    if "pseudo" in feature.qualifiers or "pseudogene" in feature.qualifiers:
        return True
    return None


def _feature_rows(feature) -> list[dict]:
    """One row per location part.

    ``+`` parts keep Biopython's biological order, so a CDS spanning the
    origin of a circular genome (``join(150001..150500,1..200)``) stays in
    transcript order.  ``-`` parts come out in reverse biological order
    (taken among the ``-`` parts only, for mixed-strand joins): joining them
    and reverse-complementing the result gives the transcript.
    """
    parts = list(feature.location.parts)
    minus = reversed([p for p in parts if p.strand == -1])
    parts = [next(minus) if p.strand == -1 else p for p in parts]
    rows = []
    for part in parts:
        rows.append({
            "start": int(part.start) + 1,
            "end": int(part.end),
            "strand": _STRAND_SYMBOLS.get(part.strand, "*"),
            "type": feature.type,
            "gene": _qualifier(feature, "gene"),
            "gene_id": _qualifier(feature, "locus_tag"),
            "pseudo": _is_pseudo(feature),
            "product": _qualifier(feature, "product"),
        })
    return rows


def features_from_record(record: SeqRecord) -> dict[str, list[dict]]:
    """Split a record's features into {feature_type: [feature dicts]}.

    Coordinates are 1-based inclusive.  Joined locations (split CDS,
    trans-spliced genes) yield one entry per part, ordered so that the codon
    usage step can stitch them back together (see ``_feature_rows``).
    ``pseudo`` is True for features carrying /pseudo or /pseudogene and None
    otherwise.
    """
    features: dict[str, list[dict]] = defaultdict(list)
    for feature in record.features:
        if feature.location is None:
            continue
        features[feature.type].extend(_feature_rows(feature))
    return dict(features)


class GenBankReader:
    """Tabular view of a GenBank record: genes, other features and CDS."""

    def __init__(self, record: SeqRecord):
        self.record = record
        self._features = features_from_record(record)

    @classmethod
    def from_file(cls, path: str | Path, record_id: str | None = None) -> "GenBankReader":
        return cls(read_genbank(path, record_id=record_id))

    @property
    def sequence(self):
        return self.record.seq

    def _frame(self, types, exclude: bool = False) -> pd.DataFrame:
        rows = [
            row
            for ftype, records in self._features.items()
            if (ftype in types) != exclude
            for row in records
        ]
        columns = ["start", "end", "strand", "type", "gene", "gene_id", "pseudo", "product"]
        return pd.DataFrame(rows, columns=columns)

    def genes(self) -> pd.DataFrame:
        """``gene`` features.  ``pseudo`` is only present if some gene is pseudo."""
        df = self._frame({"gene"})
        if df["pseudo"].notna().any():
            df["pseudo"] = df["pseudo"].eq(True)
        else:
            df = df.drop(columns=["pseudo"])
        return df

    def other_features(self) -> pd.DataFrame:
        """Everything that is not gene, CDS, exon or source (tRNA, rRNA, misc...)."""
        return self._frame(_NON_OTHER_TYPES, exclude=True)

    def cds(self) -> pd.DataFrame:
        """CDS parts in file order."""
        return self._frame({"CDS"})

    def __repr__(self) -> str:
        counts = {t: len(r) for t, r in self._features.items()}
        return f"GenBankReader({self.record.id!r}, {counts})"
