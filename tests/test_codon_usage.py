"""Tests for split-CDS merging and per-strand codon usage bias."""

import numpy as np
import pandas as pd
import pytest
from Bio.Seq import Seq

from genetable.core.codon_usage import (
    BIAS_COLUMNS,
    MalformedCodingRecordsError,
    codon_usage,
    merge_split_cds,
)
from genetable.core.milc import milc_scores

# 90 bp of Met codons, then a Lys/Ala stretch, then padding
GENOME = "ATG" * 30 + "AAAGCT" * 20 + "GCGCAA" * 25 + "T" * 40


def _cds(rows):
    return pd.DataFrame(rows, columns=["start", "end", "strand", "gene"])


# ═══════════════════════════════════════════════════════════════════════════════
# Split-CDS grouping
# ═══════════════════════════════════════════════════════════════════════════════

class TestMergeSplitCDS:
    def test_three_contiguous_parts_merge(self):
        cds = _cds([
            (91, 120, "+", "rps12"),
            (121, 150, "+", "rps12"),
            (151, 210, "+", "rps12"),
        ])
        groups = merge_split_cds(cds, GENOME, "+")
        assert len(groups) == 1
        assert groups[0].start == 91
        assert len(groups[0]) == 30 + 30 + 60
        assert str(groups[0].sequence) == GENOME[90:210]

    def test_parts_joined_in_encounter_order(self):
        cds = _cds([(151, 210, "+", "x"), (91, 120, "+", "x")])
        groups = merge_split_cds(cds, GENOME, "+")
        assert str(groups[0].sequence) == GENOME[150:210] + GENOME[90:120]
        assert groups[0].start == 151

    def test_non_consecutive_repeat_starts_new_group(self):
        cds = _cds([
            (1, 30, "+", "a"),
            (31, 60, "+", "b"),
            (61, 90, "+", "a"),
        ])
        groups = merge_split_cds(cds, GENOME, "+")
        assert [g.gene for g in groups] == ["a", "b", "a"]

    def test_other_strand_ignored(self):
        cds = _cds([(1, 30, "+", "a"), (31, 60, "-", "a"), (61, 90, "+", "a")])
        groups = merge_split_cds(cds, GENOME, "+")
        assert len(groups) == 1
        assert len(groups[0]) == 60

    def test_minus_strand_reverse_complemented_after_joining(self):
        cds = _cds([(91, 120, "-", "x"), (121, 150, "-", "x")])
        groups = merge_split_cds(cds, GENOME, "-")
        expected = Seq(GENOME[90:150]).reverse_complement()
        assert str(groups[0].sequence) == str(expected)

    def test_unnamed_record_skipped(self):
        cds = _cds([(1, 30, "+", None), (31, 60, "+", "b")])
        groups = merge_split_cds(cds, GENOME, "+")
        assert [g.gene for g in groups] == ["b"]

    def test_unnamed_record_breaks_group(self):
        cds = _cds([(1, 30, "+", "a"), (31, 60, "+", None), (61, 90, "+", "a")])
        groups = merge_split_cds(cds, GENOME, "+")
        assert [g.gene for g in groups] == ["a", "a"]
        assert [g.start for g in groups] == [1, 61]
        assert [len(g) for g in groups] == [30, 30]

    def test_out_of_bounds_is_fatal(self):
        cds = _cds([(1, 30, "+", "a"), (500, 9000, "+", "b")])
        with pytest.raises(MalformedCodingRecordsError):
            merge_split_cds(cds, GENOME, "+")

    def test_start_after_end_is_fatal(self):
        cds = _cds([(60, 31, "+", "a")])
        with pytest.raises(ValueError):
            merge_split_cds(cds, GENOME, "+")

    def test_missing_coordinates_are_fatal(self):
        cds = _cds([(None, 30, "+", "a")])
        with pytest.raises(MalformedCodingRecordsError):
            merge_split_cds(cds, GENOME, "+")


# ═══════════════════════════════════════════════════════════════════════════════
# Bias table
# ═══════════════════════════════════════════════════════════════════════════════

class TestCodonUsage:
    def test_columns(self):
        bias = codon_usage(_cds([(1, 90, "+", "a")]), GENOME)
        assert list(bias.columns) == BIAS_COLUMNS

    def test_split_gene_emits_one_row_at_first_start(self):
        cds = _cds([
            (91, 120, "+", "rps12"),
            (121, 150, "+", "rps12"),
            (151, 210, "+", "rps12"),
            (1, 90, "+", "atpA"),
        ])
        bias = codon_usage(cds, GENOME)
        assert bias["gene"].tolist() == ["rps12", "atpA"]
        assert bias["start"].tolist() == [91, 1]
        merged_score = milc_scores([GENOME[90:210], GENOME[0:90]])[0]
        assert np.isclose(bias["cu_bias"].iloc[0], merged_score)

    def test_reverse_strand_scored_on_reverse_complement(self):
        """ATG x 30 reads as CAT x 30 (His, two codons) on the minus strand."""
        bias = codon_usage(_cds([(1, 90, "-", "petD")]), GENOME)
        score = bias["cu_bias"].iloc[0]
        assert np.isclose(score, 0.5 - 1 / 30)
        assert not np.isclose(score, milc_scores([GENOME[0:90]])[0])

    def test_strands_scored_independently(self):
        plus_only = codon_usage(_cds([(1, 90, "+", "a")]), GENOME)
        both = codon_usage(_cds([(1, 90, "+", "a"), (91, 210, "-", "b")]), GENOME)
        assert np.isclose(both["cu_bias"].iloc[0], plus_only["cu_bias"].iloc[0])
        assert both["strand"].tolist() == ["+", "-"]

    def test_single_strand_only(self):
        bias = codon_usage(_cds([(91, 210, "-", "b")]), GENOME)
        assert bias["strand"].tolist() == ["-"]
        assert bias["cu_bias"].notna().all()

    def test_genome_converted_once(self, monkeypatch):
        import genetable.core.codon_usage as codon_usage_module

        calls = []
        real_as_seq = codon_usage_module.as_seq

        def counting_as_seq(genome):
            calls.append(len(genome))
            return real_as_seq(genome)

        monkeypatch.setattr(codon_usage_module, "as_seq", counting_as_seq)
        codon_usage(_cds([(1, 90, "+", "a"), (91, 210, "-", "b")]), GENOME)
        assert calls == [len(GENOME)]

    def test_lowercase_genome(self):
        cds = _cds([(1, 90, "+", "a"), (91, 210, "-", "b")])
        lower = codon_usage(cds, GENOME.lower())
        upper = codon_usage(cds, GENOME)
        assert np.allclose(lower["cu_bias"], upper["cu_bias"])

    def test_no_cds(self):
        bias = codon_usage(_cds([]), GENOME)
        assert bias.empty
        assert list(bias.columns) == BIAS_COLUMNS

    def test_none(self):
        assert codon_usage(None, GENOME).empty

    def test_stop_rm(self):
        cds = _cds([(1, 90, "+", "a"), (91, 210, "+", "b")])
        with_stops = codon_usage(cds, GENOME)
        without = codon_usage(cds, GENOME, stop_rm=True)
        assert len(with_stops) == len(without) == 2
