import logging

import streamlit as st
import yaml

from api.exceptions import PipelineError
from interface import BucketKind
from process import fields
from process.aggregate import lineages_over_time, mutation_frequency_over_time, mutation_presence_over_time
from process.loader import load_tables
from process.mutations import lineage_counts, mutations_per_genome, summarize, top_mutations
from utils.config import get_app_config, resolve_path
from visualize.mutations import (
    faceted_frequency_chart,
    frequency_line_chart,
    lineage_bar_chart,
    mutation_frequency_heatmap,
    mutations_per_genome_histogram,
)

logger = logging.getLogger(__name__)

BUCKET_LABELS = {"ISO week (Monday start)": BucketKind.WEEK, "7-day intervals": BucketKind.SEVEN_DAY}


def _load(metadata_upload, mutations_upload, settings):
    """Load uploaded tables, falling back to the configured paths."""
    metadata_source = metadata_upload or resolve_path(settings.metadata_path)
    mutations_source = mutations_upload or resolve_path(settings.mutations_path)
    return load_tables(metadata_source, mutations_source)


def app():
    st.title("Mutation Surveillance")
    st.markdown("### Lineages and mutations over time in sequenced genomes")

    try:
        config = get_app_config()
    except (PipelineError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"Could not load configuration: {e}")
        st.error(f"⚠️ Could not load configuration: {str(e)}")
        st.info("Please check the configuration in `utils/config.yaml`.")
        return
    settings = config.mutation_report
    theme = config.theme

    with st.expander("Upload tables (optional)"):
        metadata_upload = st.file_uploader("Genome metadata (TSV)", type=["tsv", "txt"])
        mutations_upload = st.file_uploader("Mutation records (TSV)", type=["tsv", "txt"])

    try:
        metadata, mutations = _load(metadata_upload, mutations_upload, settings)
    except FileNotFoundError as e:
        st.warning(f"⚠️ Input table not found: {e.filename}")
        st.info("Upload the tables above or set the paths in `utils/config.yaml`.")
        return
    except PipelineError as e:
        st.error(f"⚠️ Could not load tables: {str(e)}")
        return

    summary = summarize(metadata, mutations)
    cols = st.columns(4)
    cols[0].metric("Genomes", summary.n_genomes)
    cols[1].metric("Mutations", summary.n_mutations)
    cols[2].metric("Synonymous sites", summary.n_synonymous_sites)
    cols[3].metric("Nonsynonymous sites", summary.n_nonsynonymous_sites)
    if summary.first_sample_date is not None:
        st.caption(
            f"Samples from {summary.first_sample_date:%Y-%m-%d} to {summary.last_sample_date:%Y-%m-%d}, "
            f"{summary.n_lineages} lineages"
        )

    st.markdown("---")
    bucket_label = st.radio("Time bucket:", list(BUCKET_LABELS), horizontal=True,
                            index=list(BUCKET_LABELS.values()).index(settings.bucket))
    kind = BUCKET_LABELS[bucket_label]
    n_lineages = max(1, int(metadata[fields.LINEAGE].nunique()))
    top_n = st.slider("Lineages shown (others grouped as 'Other'):", 1, max(n_lineages, 2),
                      min(settings.top_lineages, n_lineages))

    st.write("### Lineages over time")
    lineages = lineages_over_time(metadata, kind, top_n=top_n)
    if lineages.empty:
        st.warning("⚠️ No genomes to show.")
        return
    st.plotly_chart(lineage_bar_chart(lineages, theme), use_container_width=True)
    with st.expander("Genomes per lineage"):
        st.dataframe(lineage_counts(metadata), hide_index=True)

    st.write("### Mutations per genome")
    per_genome = mutations_per_genome(metadata, mutations)
    zero = int((per_genome[fields.MUTATION_COUNT] == 0).sum())
    if zero:
        st.info(f"{zero} genome(s) carry no mutations relative to the reference.")
    st.plotly_chart(mutations_per_genome_histogram(per_genome, theme), use_container_width=True)

    st.write("### Most common mutations")
    top = top_mutations(metadata, mutations, n=settings.top_mutations)
    st.dataframe(top, hide_index=True)
    if top.empty:
        return

    labels = top[fields.MUTATION].tolist()
    frequencies = mutation_frequency_over_time(metadata, mutations, labels, kind)
    view = st.selectbox("Frequency view:", ["Lines", "Small multiples", "Heatmap"])
    if view == "Lines":
        st.plotly_chart(frequency_line_chart(frequencies, theme), use_container_width=True)
    elif view == "Small multiples":
        st.plotly_chart(faceted_frequency_chart(frequencies, theme), use_container_width=True)
    else:
        st.plotly_chart(mutation_frequency_heatmap(frequencies, theme), use_container_width=True)

    st.write("### Genomes with and without a mutation")
    default_index = labels.index(settings.highlight_mutation) if settings.highlight_mutation in labels else 0
    label = st.selectbox("Mutation:", labels, index=default_index)
    presence = mutation_presence_over_time(metadata, mutations, label, kind)
    st.plotly_chart(
        frequency_line_chart(presence, theme, series_column=fields.CATEGORY,
                             title=f"Genomes with and without {label}"),
        use_container_width=True,
    )


if __name__ == "__main__":
    app()
