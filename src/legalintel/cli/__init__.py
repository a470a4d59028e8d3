# src/legalintel/cli/__init__.py
