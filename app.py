"""
Formtagger - Tag form regions into Sections, Labels and Inputs

Launch with: streamlit run app.py
"""
from formtagger.main import main

main()
