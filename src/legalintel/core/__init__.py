# src/legalintel/core/__init__.py
