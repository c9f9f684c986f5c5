"""
TranslateMD - Clinical Speech Translation Proxy

A FastAPI-based proxy that brokers short-lived realtime credentials and
forwards transcription, translation and language detection requests to the
upstream AI API, plus the typed client used by the mobile front-end.
"""

__version__ = "1.0.0"
__author__ = "translatemd"
