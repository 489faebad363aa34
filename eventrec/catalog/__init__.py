"""
Event catalog.

Responsibilities:
- Read the external catalog feed and drop malformed rows.
- Expose the catalog as an immutable, id-indexed snapshot.
"""
