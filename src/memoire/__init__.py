"""
memoire - Personal photo and video gallery with Streamlit

A web application for keeping a shared collection of memories:
- Photo, video and album upload to Google Cloud Storage
- Video thumbnail extraction
- Record storage with DuckDB
- Grid and timeline browsing with a full-screen viewer
- Admin-only deletion
"""

__version__ = "0.1.0"
__author__ = "memoire"
__description__ = "Personal photo and video gallery with Streamlit"
