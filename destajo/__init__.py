"""Core (UI-agnostic) destajo viewer logic.

This package contains:
- date normalization (Sheets literals, day-first text, serials -> ISO)
- the dataset store and filter engine (pandas)
- chunked table rendering and the current-view export (XLSX)
- data sources (Google Sheets gviz with local workbook fallback)
"""
