# src/legalintel/connectors/__init__.py
