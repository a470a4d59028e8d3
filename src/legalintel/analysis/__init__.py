# src/legalintel/analysis/__init__.py
