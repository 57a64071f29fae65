"""
Tests for the process.mutations module.
"""

import pytest
import pandas as pd

from interface import MutationType
from process.mutations import (
    extract_position,
    genomes_with_mutation,
    lineage_counts,
    lump_lineages,
    mutation_label,
    mutations_per_genome,
    sort_mutations_by_position,
    summarize,
    top_mutations,
    validate_mutation_label,
)


class TestMutationType:
    """Test parsing of mutation types."""

    def test_short_forms(self):
        assert MutationType.parse("S") == MutationType.SYNONYMOUS
        assert MutationType.parse("n") == MutationType.NONSYNONYMOUS

    def test_long_forms(self):
        assert MutationType.parse("synonymous") == MutationType.SYNONYMOUS
        assert MutationType.parse(" Nonsynonymous ") == MutationType.NONSYNONYMOUS

    def test_invalid_mutation_type(self):
        with pytest.raises(ValueError, match="Unknown mutation type"):
            MutationType.parse("missense")


class TestExtractPosition:
    """Test the extract_position function."""

    def test_one_letter_labels(self):
        assert extract_position("S:N501Y") == 501
        assert extract_position("S:D614G") == 614
        assert extract_position("ORF1ab:F924F") == 924

    def test_three_letter_labels(self):
        assert extract_position("S:p.Asn501Tyr") == 501
        assert extract_position("ORF1ab:p.Pro4715Leu") == 4715

    def test_without_gene(self):
        assert extract_position("E484K") == 484

    def test_stop_and_deletion(self):
        assert extract_position("ORF8:Q27*") == 27
        assert extract_position("S:Y144-") == 144

    def test_case_and_whitespace(self):
        assert extract_position(" s:n501y ") == 501

    def test_invalid_labels(self):
        assert extract_position("") == 0
        assert extract_position("S:invalid") == 0

    def test_fallback_number_extraction(self):
        assert extract_position("S:del69_70") == 69


class TestSortMutationsByPosition:
    """Test the sort_mutations_by_position function."""

    def test_sorting(self):
        mutations = ["S:D614G", "S:N501Y", "S:E484K"]
        assert sort_mutations_by_position(mutations) == ["S:E484K", "S:N501Y", "S:D614G"]

    def test_empty_list(self):
        assert sort_mutations_by_position([]) == []

    def test_duplicate_positions_keep_order(self):
        mutations = ["S:N501Y", "S:N501T", "S:K417N"]
        assert sort_mutations_by_position(mutations) == ["S:K417N", "S:N501Y", "S:N501T"]


class TestLabels:
    """Test building and validating mutation labels."""

    def test_mutation_label(self):
        assert mutation_label("S", "N501Y") == "S:N501Y"

    def test_validate(self):
        assert validate_mutation_label("S:N501Y") is True
        assert validate_mutation_label("ORF1ab:p.Pro4715Leu") is True
        assert validate_mutation_label("N501Y") is False
        assert validate_mutation_label(":N501Y") is False
        assert validate_mutation_label("S:X501") is False


class TestSummaries:
    """Test genome and mutation summaries."""

    def test_summarize(self, metadata_df, mutations_df):
        summary = summarize(metadata_df, mutations_df)
        assert summary.n_genomes == 10
        assert summary.n_mutations == 14
        assert summary.n_sites == 3
        assert summary.n_synonymous_sites == 1
        assert summary.n_nonsynonymous_sites == 2
        assert summary.n_lineages == 3
        assert summary.first_sample_date == pd.Timestamp("2021-03-01")
        assert summary.last_sample_date == pd.Timestamp("2021-03-07")

    def test_summarize_empty_mutations(self, metadata_df, mutations_df):
        summary = summarize(metadata_df, mutations_df.iloc[0:0])
        assert summary.n_mutations == 0
        assert summary.n_synonymous_sites == 0
        assert summary.n_nonsynonymous_sites == 0

    def test_zero_mutation_genome_is_kept(self, metadata_df, mutations_df):
        """A genome without mutations must show up with a count of 0."""
        per_genome = mutations_per_genome(metadata_df, mutations_df)
        assert len(per_genome) == len(metadata_df)
        counts = dict(zip(per_genome["genome_id"], per_genome["n_mutations"]))
        assert counts["G9"] == 0
        assert counts["G0"] == 2
        assert counts["G4"] == 2
        assert counts["G8"] == 1

    def test_all_genomes_without_mutations(self, metadata_df, mutations_df):
        per_genome = mutations_per_genome(metadata_df, mutations_df.iloc[0:0])
        assert (per_genome["n_mutations"] == 0).all()
        assert len(per_genome) == 10

    def test_top_mutations(self, metadata_df, mutations_df):
        top = top_mutations(metadata_df, mutations_df, n=2)
        assert top["mutation"].tolist() == ["S:D614G", "S:N501Y"]
        assert top["genomes"].tolist() == [9, 3]
        assert top["fraction"].tolist() == pytest.approx([0.9, 0.3])

    def test_top_mutations_by_type(self, metadata_df, mutations_df):
        top = top_mutations(metadata_df, mutations_df, n=5, mutation_type=MutationType.SYNONYMOUS)
        assert top["mutation"].tolist() == ["ORF1ab:F924F"]

    def test_top_mutations_counts_genomes_once(self, metadata_df, mutations_df):
        doubled = pd.concat([mutations_df, mutations_df.iloc[[0]]], ignore_index=True)
        top = top_mutations(metadata_df, doubled, n=1)
        assert top["genomes"].iloc[0] == 9

    def test_lineage_counts(self, metadata_df):
        counts = lineage_counts(metadata_df)
        assert counts["pangolin_lineage"].tolist() == ["B.1", "B.1.1.7", "Other"]
        assert counts["count"].tolist() == [4, 3, 3]

    def test_lump_lineages(self, metadata_df):
        lumped = lump_lineages(metadata_df, top_n=1, other_label="Rest")
        assert set(lumped["pangolin_lineage"]) == {"B.1", "Rest"}
        assert (metadata_df["pangolin_lineage"] == "B.1.1.7").sum() == 3  # input untouched

    def test_genomes_with_mutation(self, mutations_df):
        assert genomes_with_mutation(mutations_df, "S:N501Y") == {"G4", "G5", "G6"}
        assert genomes_with_mutation(mutations_df, "S:E484K") == set()

    def test_genomes_with_mutation_requires_gene(self, mutations_df):
        with pytest.raises(ValueError, match="GENE:CHANGE"):
            genomes_with_mutation(mutations_df, "N501Y")
