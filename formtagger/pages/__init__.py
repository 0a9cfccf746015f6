"""
Streamlit pages for Formtagger application
"""
from .annotate import render_annotation_page

__all__ = ["render_annotation_page"]
