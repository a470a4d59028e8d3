# src/legalintel/tasks/__init__.py
