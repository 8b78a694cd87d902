"""API layer: the query pipeline shared by the CLI and tests.

1. No SQLAlchemy imports - only talk to a RecordStore
2. Records are flattened here, rendering lives in output/
"""
