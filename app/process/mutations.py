"""
Mutation processing utilities.

This module contains functions for building and parsing mutation labels,
extracting residue positions and summarizing mutation tables.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from interface import MutationType
from process import fields

AMINO_ACIDS = ["A", "C", "D", "E", "F", "G", "H", "I", "K",
               "L", "M", "N", "P", "Q", "R", "S", "T",
               "V", "W", "Y"]

# One-letter form ("N501Y", "*" for stop) and HGVS three-letter form ("p.Asn501Tyr")
_ONE_LETTER = re.compile(rf"^([{''.join(AMINO_ACIDS)}*])(\d+)([{''.join(AMINO_ACIDS)}*]|-|DEL)$")
_THREE_LETTER = re.compile(r"^P\.([A-Z]{3})(\d+)([A-Z]{3}|\*|DEL|FS)$")


@dataclass
class MutationSummary:
    """Headline numbers for a genome/mutation table pair."""
    n_genomes: int
    n_mutations: int
    n_sites: int
    n_synonymous_sites: int
    n_nonsynonymous_sites: int
    n_lineages: int
    first_sample_date: Optional[pd.Timestamp]
    last_sample_date: Optional[pd.Timestamp]


def mutation_label(gene: str, aa_change: str) -> str:
    """Build a display label such as "S:N501Y" from gene and amino acid change."""
    return f"{gene}:{aa_change}"


def _match_change(change: str) -> Optional[re.Match]:
    change = change.strip().upper()
    return _ONE_LETTER.match(change) or _THREE_LETTER.match(change)


def extract_position(mutation_str: str) -> int:
    """Extract the residue position from a mutation label.

    Examples:
        >>> extract_position("S:N501Y")
        501
        >>> extract_position("ORF1ab:p.Pro4715Leu")
        4715
        >>> extract_position("N501Y")
        501

    Returns:
        int: The residue position, or 0 if parsing fails
    """
    mutation_str = mutation_str.strip()
    change = mutation_str.split(":", 1)[1] if ":" in mutation_str else mutation_str
    match = _match_change(change)
    if match:
        return int(match.group(2))

    # Fallback: try to extract any number from the string
    numbers = re.findall(r"\d+", change)
    if numbers:
        return int(numbers[0])
    return 0


def sort_mutations_by_position(mutations: List[str]) -> List[str]:
    """Sort mutation labels by residue position in ascending order."""
    return sorted(mutations, key=extract_position)


def validate_mutation_label(mutation_str: str) -> bool:
    """Check that a label has the "GENE:CHANGE" form with a parsable change."""
    if ":" not in mutation_str:
        return False
    gene, change = mutation_str.strip().split(":", 1)
    if not gene:
        return False
    return _match_change(change) is not None


def with_labels(mutations: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of the mutation table with a `mutation` label column."""
    labelled = mutations.copy()
    labelled[fields.MUTATION] = [
        mutation_label(gene, change)
        for gene, change in zip(labelled[fields.GENE], labelled[fields.AA_CHANGE])
    ]
    return labelled


def summarize(metadata: pd.DataFrame, mutations: pd.DataFrame) -> MutationSummary:
    """Compute genome, mutation and site counts.

    Sites are distinct genomic positions; a position is counted once per
    mutation type it was observed with.
    """
    dates = metadata[fields.SAMPLE_DATE]
    by_type = mutations.groupby(fields.MUTATION_TYPE)[fields.POSITION].nunique()
    return MutationSummary(
        n_genomes=len(metadata),
        n_mutations=len(mutations),
        n_sites=int(mutations[fields.POSITION].nunique()),
        n_synonymous_sites=int(by_type.get(MutationType.SYNONYMOUS.value, 0)),
        n_nonsynonymous_sites=int(by_type.get(MutationType.NONSYNONYMOUS.value, 0)),
        n_lineages=int(metadata[fields.LINEAGE].nunique()),
        first_sample_date=dates.min() if len(dates) else None,
        last_sample_date=dates.max() if len(dates) else None,
    )


def mutations_per_genome(metadata: pd.DataFrame, mutations: pd.DataFrame) -> pd.DataFrame:
    """Count mutation records for every genome, keeping genomes without mutations as 0."""
    counts = mutations.groupby(fields.GENOME_ID).size()
    result = metadata[[fields.GENOME_ID, fields.LINEAGE]].copy()
    result[fields.MUTATION_COUNT] = (
        result[fields.GENOME_ID].map(counts).fillna(0).astype(int)
    )
    return result.reset_index(drop=True)


def top_mutations(
    metadata: pd.DataFrame,
    mutations: pd.DataFrame,
    n: int = 10,
    mutation_type: Optional[MutationType] = None,
) -> pd.DataFrame:
    """Return the n mutations carried by the most genomes.

    Returns a DataFrame with columns ['mutation', 'genomes', 'fraction'],
    sorted by genome count (descending) and label.
    """
    labelled = with_labels(mutations)
    if mutation_type is not None:
        labelled = labelled[labelled[fields.MUTATION_TYPE] == mutation_type.value]

    carriers = (
        labelled.drop_duplicates([fields.GENOME_ID, fields.MUTATION])
        .groupby(fields.MUTATION)
        .size()
        .rename(fields.GENOMES)
        .reset_index()
    )
    total = len(metadata)
    carriers[fields.FRACTION] = carriers[fields.GENOMES] / total if total else 0.0
    carriers = carriers.sort_values(
        [fields.GENOMES, fields.MUTATION], ascending=[False, True]
    )
    return carriers.head(n).reset_index(drop=True)


def lineage_counts(metadata: pd.DataFrame) -> pd.DataFrame:
    """Count genomes per lineage, most common first."""
    counts = (
        metadata.groupby(fields.LINEAGE)
        .size()
        .rename(fields.COUNT)
        .reset_index()
        .sort_values([fields.COUNT, fields.LINEAGE], ascending=[False, True])
    )
    return counts.reset_index(drop=True)


def lump_lineages(metadata: pd.DataFrame, top_n: int, other_label: str = "Other") -> pd.DataFrame:
    """Keep the top_n most common lineages and relabel the rest as `other_label`."""
    keep = set(lineage_counts(metadata)[fields.LINEAGE].head(top_n))
    lumped = metadata.copy()
    lumped[fields.LINEAGE] = lumped[fields.LINEAGE].where(
        lumped[fields.LINEAGE].isin(keep), other_label
    )
    return lumped


def genomes_with_mutation(mutations: pd.DataFrame, label: str) -> set:
    """Return the identifiers of genomes carrying the labelled mutation."""
    if ":" not in label:
        raise ValueError(f"Mutation label must have the form GENE:CHANGE, got '{label}'")
    gene, change = label.split(":", 1)
    mask = (mutations[fields.GENE] == gene) & (mutations[fields.AA_CHANGE] == change)
    return set(mutations.loc[mask, fields.GENOME_ID])
