"""Core engine primitives (events and delayed-effect scheduling).

Kept free of FastAPI concerns so it can be reused by API routes and tests.
"""
