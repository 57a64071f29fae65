import streamlit as st
import logging

import subpages.index as index
import subpages.mutation_report as mutation_report
import subpages.reproduction as reproduction

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

if __name__ == "__main__":
    st.set_page_config(
        page_title="COVID-19 Surveillance Denmark",
        layout="wide"
    )

    # Page configurations
    PAGE_CONFIGS = [
        {"app": index.app, "title": "Home", "icon": "🏠", "default": True, "url_path": None},
        {"app": mutation_report.app, "title": "Mutation Surveillance", "icon": "🧬", "url_path": "mutations"},
        {"app": reproduction.app, "title": "Reproduction Number", "icon": "📈", "url_path": "reproduction"},
    ]

    # Create pages dynamically from configurations
    pages = [
        st.Page(
            config["app"],
            title=config["title"],
            icon=config["icon"],
            default=config.get("default", False),
            url_path=config.get("url_path")
        )
        for config in PAGE_CONFIGS
    ]

    # Get the current page but hide the navigation UI
    current_page = st.navigation(pages, position="hidden")

    with st.sidebar:
        st.markdown("## COVID-19 Surveillance")
        # Create custom navigation links using page_link
        for page in pages:
            st.page_link(page, label=page.title)

    # Run the current page
    current_page.run()
