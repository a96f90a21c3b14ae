"""Standard genetic code and codon counting for in-frame coding sequences."""

from itertools import product

import numpy as np

BASES = ["A", "C", "G", "T"]
STOP_CODONS = {"TAA", "TAG", "TGA"}
ALL_CODONS = sorted("".join(b) for b in product(BASES, repeat=3))
SENSE_CODONS = [c for c in ALL_CODONS if c not in STOP_CODONS]

# Standard code (NCBI table 1), three-letter amino acids, "*" for stops
CODON_TABLE: dict[str, str] = {
    "TTT": "Phe", "TTC": "Phe", "TTA": "Leu", "TTG": "Leu",
    "CTT": "Leu", "CTC": "Leu", "CTA": "Leu", "CTG": "Leu",
    "ATT": "Ile", "ATC": "Ile", "ATA": "Ile", "ATG": "Met",
    "GTT": "Val", "GTC": "Val", "GTA": "Val", "GTG": "Val",
    "TCT": "Ser", "TCC": "Ser", "TCA": "Ser", "TCG": "Ser",
    "CCT": "Pro", "CCC": "Pro", "CCA": "Pro", "CCG": "Pro",
    "ACT": "Thr", "ACC": "Thr", "ACA": "Thr", "ACG": "Thr",
    "GCT": "Ala", "GCC": "Ala", "GCA": "Ala", "GCG": "Ala",
    "TAT": "Tyr", "TAC": "Tyr", "TAA": "*", "TAG": "*",
    "CAT": "His", "CAC": "His", "CAA": "Gln", "CAG": "Gln",
    "AAT": "Asn", "AAC": "Asn", "AAA": "Lys", "AAG": "Lys",
    "GAT": "Asp", "GAC": "Asp", "GAA": "Glu", "GAG": "Glu",
    "TGT": "Cys", "TGC": "Cys", "TGA": "*", "TGG": "Trp",
    "CGT": "Arg", "CGC": "Arg", "CGA": "Arg", "CGG": "Arg",
    "AGT": "Ser", "AGC": "Ser", "AGA": "Arg", "AGG": "Arg",
    "GGT": "Gly", "GGC": "Gly", "GGA": "Gly", "GGG": "Gly",
}

_CODON_INDEX = {c: i for i, c in enumerate(ALL_CODONS)}


def sequence_to_codons(sequence: str) -> list[str]:
    """Split a coding sequence into in-frame codons.

    A trailing partial codon is discarded (fragmented annotations often
    end off-frame).

    Args:
        sequence: Nucleotide sequence (str or Bio.Seq).

    Returns:
        List of upper-case 3-character codon strings.
    """
    seq = str(sequence).upper()
    usable = len(seq) - len(seq) % 3
    return [seq[i : i + 3] for i in range(0, usable, 3)]


def count_codons(sequence: str) -> np.ndarray:
    """Count the 64 codons of an in-frame sequence.

    Codons containing anything other than A/C/G/T (N, IUPAC ambiguity
    codes, gaps) are skipped.

    Returns:
        int64 array of shape (64,), ordered as ``ALL_CODONS``.
    """
    counts = np.zeros(len(ALL_CODONS), dtype=np.int64)
    for codon in sequence_to_codons(sequence):
        idx = _CODON_INDEX.get(codon)
        if idx is not None:
            counts[idx] += 1
    return counts


def codon_count_matrix(sequences: list[str]) -> np.ndarray:
    """Stack per-sequence codon counts into an (n_sequences, 64) matrix."""
    if not sequences:
        return np.zeros((0, len(ALL_CODONS)), dtype=np.int64)
    return np.vstack([count_codons(s) for s in sequences])
