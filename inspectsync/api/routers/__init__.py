"""
FastAPI routers for the import reconciliation service.

Each router covers one stage: mapping inference, import scanning and
conflict resolution, reconciliation, saved company profiles and read
access to tracked inspections.
"""
