# src/legalintel/llm/__init__.py
