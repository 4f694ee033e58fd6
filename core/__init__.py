"""Core (UI-agnostic) injury explorer logic.

This package contains:
- data loading (TSV -> pandas), product selection and weighted aggregation
- filter normalization
- the narrative stepper and per-session state
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
