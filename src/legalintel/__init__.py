# src/legalintel/__init__.py

"""LegalIntel: legal document analysis tasks backed by an LLM."""

__version__ = "0.1.0"
