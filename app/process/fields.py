"""
Centralized column name constants for the surveillance tables.

When an upstream export renames a column, only this file needs to be updated
instead of making changes throughout the codebase.
"""

# Genome metadata (GISAID-derived TSV)
GENOME_ID = "genome_id"
SAMPLE_DATE = "sample_date"
COUNTRY = "country"
SPECIES = "species"
LINEAGE = "pangolin_lineage"

METADATA_COLUMNS = [GENOME_ID, SAMPLE_DATE, COUNTRY, SPECIES, LINEAGE]

# Per-mutation records (SnpEff-annotated TSV)
POSITION = "position"
GENE = "gene"
AA_CHANGE = "aa_change"
MUTATION_TYPE = "mutation_type"

MUTATIONS_COLUMNS = [GENOME_ID, POSITION, GENE, AA_CHANGE, MUTATION_TYPE]

# Derived columns
MUTATION = "mutation"
MUTATION_COUNT = "n_mutations"
GENOMES = "genomes"
FRACTION = "fraction"

# Aggregation tables
BUCKET = "bucket"
CATEGORY = "category"
COUNT = "count"
PROPORTION = "proportion"
PRESENT = "present"
ABSENT = "absent"

# Case time series (source columns in Test_pos_over_time.csv)
SOURCE_DATE = "Date"
SOURCE_TESTS = "Tested"
SOURCE_POSITIVES = "NewPositive"

# Case time series (internal names)
DATE = "date"
TESTS = "tests"
POSITIVES = "positives"

# Reproduction number estimate
R = "R"
LOWER = "lower"
UPPER = "upper"

ESTIMATE_COLUMNS = [DATE, R, LOWER, UPPER]
