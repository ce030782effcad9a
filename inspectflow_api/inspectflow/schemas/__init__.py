"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by domain module (orders, gauges, packets) and also
include common reusable models such as the role enum and standard responses.
"""

from .common import ErrorResponse, HealthResponse, Role  # noqa: F401
