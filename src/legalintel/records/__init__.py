# src/legalintel/records/__init__.py
