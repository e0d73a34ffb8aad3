"""
Feature modules live under this package.

Each module owns its models, service functions and routes, and reuses the
platform pieces (session gate, audit, DB session, shared CRUD helpers).
"""
