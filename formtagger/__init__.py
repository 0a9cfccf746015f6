"""
Formtagger Application Package

Contains the Streamlit application organized into:
- state.py: Session state management
- main.py: Main entry point
- pages/: Page modules
- services/annotation/: Annotation model, store, session and export/import
"""
from formtagger.main import main
from formtagger.state import AnnotationState, init_session_state

__all__ = ["main", "AnnotationState", "init_session_state"]
