"""
API route modules for the inspection workflow.

This package contains subrouters for:
- Orders: list, today's queue, create, advance
- Gauges: calibration catalog and broken flag
- Packets: open packet, report save/evaluate, gauge use, signatures

Routers are included from inspectflow.api.main (under the /api prefix).
"""
