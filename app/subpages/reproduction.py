import logging

import streamlit as st
import yaml

from api.exceptions import NetworkError, PipelineError
from pipelines import latest_estimate, run_reproduction_estimate
from process import fields
from utils.config import get_app_config
from visualize.reproduction import reproduction_number_chart

logger = logging.getLogger(__name__)


def app():
    st.title("Reproduction Number")
    st.markdown("### Test-adjusted estimate of R from the latest national case counts")

    try:
        config = get_app_config()
    except (PipelineError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"Could not load configuration: {e}")
        st.error(f"⚠️ Could not load configuration: {str(e)}")
        st.info("Please check the configuration in `utils/config.yaml`.")
        return
    settings = config.reproduction

    st.write(
        f"Data are taken from **{settings.lower_bound.isoformat()}** onwards and the last "
        f"**{settings.trailing_margin_days}** days before the archive date are left out as incomplete."
    )

    col1, col2 = st.columns(2)
    with col1:
        test_exponent = st.number_input("Test exponent (cases ∝ tests^α):", min_value=0.0, max_value=2.0,
                                        value=float(settings.test_exponent), step=0.05)
    with col2:
        smoothing = st.number_input("Smoothing strength:", min_value=0.1, max_value=10000.0,
                                    value=float(settings.smoothing), step=5.0)

    if not st.button("Fetch latest data and estimate R"):
        st.info("Press the button to download the latest archive.")
        return

    run_config = config.model_copy(update={
        "reproduction": settings.model_copy(update={"test_exponent": test_exponent, "smoothing": smoothing})
    })

    with st.spinner("Downloading archive and estimating R..."):
        try:
            report = run_reproduction_estimate(run_config, write_outputs=False)
        except NetworkError as e:
            logger.error(f"Network error: {e}")
            st.error(f"⚠️ Could not reach the statistics site: {str(e)}")
            return
        except PipelineError as e:
            logger.error(f"Pipeline error: {e}")
            st.error(f"⚠️ {str(e)}")
            return

    st.success(f"Archive from **{report.link.archive_date.isoformat()}**: {report.link.url}")
    latest = latest_estimate(report)
    if latest:
        st.metric(f"R on {latest[fields.DATE].isoformat()}", f"{latest[fields.R]:.2f}",
                  help=f"Confidence interval {latest[fields.LOWER]:.2f} - {latest[fields.UPPER]:.2f}")

    st.plotly_chart(reproduction_number_chart(report.estimate, config.theme), use_container_width=True)

    with st.expander("Estimate table"):
        st.dataframe(report.estimate, hide_index=True)
        st.download_button(
            "Download CSV",
            report.estimate.to_csv(index=False, date_format="%Y-%m-%d"),
            file_name=f"reproduction_number_{report.link.archive_date.isoformat()}.csv",
            mime="text/csv",
        )


if __name__ == "__main__":
    app()
