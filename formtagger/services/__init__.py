"""
Services for Formtagger
"""
