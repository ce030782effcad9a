"""
Core application utilities for settings, logging, errors and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Structured logging with correlation id / actor role context
- The domain exception hierarchy
- Dependency helpers (actor role extraction, DB session)
"""
