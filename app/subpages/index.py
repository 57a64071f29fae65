import streamlit as st
from utils.config import get_app_config


def app():
    st.title("COVID-19 Genomic and Epidemiological Surveillance in Denmark")
    st.markdown("### Workshop reports on lineages, mutations and the reproduction number")

    st.write("## Overview")
    st.markdown("""
    This report combines two independent analyses:

    - *Mutation surveillance*: GISAID-derived genome metadata and SnpEff-annotated mutations,
      summarized and bucketed by week to follow lineages and mutations over time.
    - *Reproduction number*: the latest daily test and case counts published by the national
      statistics site, adjusted for testing volume and turned into an estimate of R with a
      confidence band.
    """)

    try:
        config = get_app_config()
    except Exception as e:
        st.error(f"⚠️ Could not load configuration: {str(e)}")
        st.info("Please check the configuration in `utils/config.yaml`.")
        return

    st.write("#### Current Configuration")
    mutation_settings = config.mutation_report
    reproduction_settings = config.reproduction
    st.info(
        f"**Genome metadata:** `{mutation_settings.metadata_path}` | "
        f"**Mutations:** `{mutation_settings.mutations_path}` | "
        f"**Bucket:** {mutation_settings.bucket.value}"
    )
    st.info(
        f"**Case data from** {reproduction_settings.lower_bound.isoformat()} up to "
        f"{reproduction_settings.trailing_margin_days} days before the archive date | "
        f"**Test exponent:** {reproduction_settings.test_exponent} | "
        f"**Smoothing:** {reproduction_settings.smoothing}"
    )

    st.warning("The estimates shown here are for training purposes and are not official figures.")


if __name__ == "__main__":
    app()
