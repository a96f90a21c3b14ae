"""Tests for the genetic code tables and codon counting."""

import numpy as np
import pytest
from Bio.Seq import Seq

from genetable.core.codons import (
    ALL_CODONS,
    CODON_TABLE,
    SENSE_CODONS,
    STOP_CODONS,
    codon_count_matrix,
    count_codons,
    sequence_to_codons,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Genetic code
# ═══════════════════════════════════════════════════════════════════════════════

class TestCodonTable:
    def test_64_codons(self):
        assert len(ALL_CODONS) == 64
        assert set(CODON_TABLE) == set(ALL_CODONS)

    def test_61_sense_codons(self):
        assert len(SENSE_CODONS) == 61
        assert not STOP_CODONS & set(SENSE_CODONS)

    def test_stops_map_to_star(self):
        for c in STOP_CODONS:
            assert CODON_TABLE[c] == "*"

    def test_single_codon_families(self):
        """Met and Trp are each encoded by a single codon."""
        met = [c for c, aa in CODON_TABLE.items() if aa == "Met"]
        trp = [c for c, aa in CODON_TABLE.items() if aa == "Trp"]
        assert met == ["ATG"]
        assert trp == ["TGG"]

    def test_six_fold_families(self):
        for aa in ("Leu", "Ser", "Arg"):
            assert sum(1 for v in CODON_TABLE.values() if v == aa) == 6


# ═══════════════════════════════════════════════════════════════════════════════
# Splitting and counting
# ═══════════════════════════════════════════════════════════════════════════════

class TestSequenceToCodons:
    def test_basic(self):
        assert sequence_to_codons("ATGAAATAA") == ["ATG", "AAA", "TAA"]

    def test_trailing_partial_codon_dropped(self):
        assert sequence_to_codons("ATGAAAT") == ["ATG", "AAA"]

    def test_lowercase_is_upper_cased(self):
        assert sequence_to_codons("atgaaa") == ["ATG", "AAA"]

    def test_accepts_seq(self):
        assert sequence_to_codons(Seq("ATGGCC")) == ["ATG", "GCC"]

    def test_empty(self):
        assert sequence_to_codons("") == []


class TestCountCodons:
    def test_counts(self):
        counts = count_codons("AAAAAAAAG")
        assert counts.shape == (64,)
        assert counts[ALL_CODONS.index("AAA")] == 2
        assert counts[ALL_CODONS.index("AAG")] == 1
        assert counts.sum() == 3

    def test_ambiguous_codons_skipped(self):
        counts = count_codons("AAANNNAYG")
        assert counts.sum() == 1

    def test_matrix_shape(self):
        mat = codon_count_matrix(["AAA", "CCCGGG", ""])
        assert mat.shape == (3, 64)
        assert np.array_equal(mat.sum(axis=1), [1, 2, 0])

    def test_empty_matrix(self):
        assert codon_count_matrix([]).shape == (0, 64)
