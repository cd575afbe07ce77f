"""
Call event model, classification and field validation.
"""
