"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for the order store, the gauge
store and the packet state store. They are the only code that talks to the
database; the inspection engine itself never does.
"""
