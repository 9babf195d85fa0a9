"""Nabha Shiksha: bilingual (Punjabi/English) learning backend and offline client."""

__version__ = "1.0.0"
