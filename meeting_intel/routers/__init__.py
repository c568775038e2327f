"""FastAPI routers for the worker.

Routers are grouped by domain (summarize, sessions, summary config).
"""
