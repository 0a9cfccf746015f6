"""
Formtagger - Tag form regions into Sections, Labels and Inputs

Main application entry point.
"""
import streamlit as st

from formtagger import config
from formtagger.state import init_session_state
from formtagger.utils import setup_logging
from formtagger.pages.annotate import render_annotation_page


def main():
    """Main application entry point"""
    # Page config
    st.set_page_config(
        page_title="Formtagger",
        page_icon="",
        layout="wide",
    )

    settings = config.get_settings()
    setup_logging("formtagger", level=settings["log_level"])

    # Initialize session state
    init_session_state(settings)

    st.sidebar.title("Formtagger")
    render_annotation_page()


if __name__ == "__main__":
    main()
