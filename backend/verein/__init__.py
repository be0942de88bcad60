"""
Verein Backend - Application Package Initializer
=================================================

What: Marks the `verein` directory as a Python package.
Who:  Imported by uvicorn (`verein.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way for both transports:

    ┌──────────────────────────┬──────────────────────────┐
    │   REST (routes/)         │   GraphQL (graphql_api/) │  ← protocol mapping only
    ├──────────────────────────┴──────────────────────────┤
    │   Services (read + write, validation)               │  ← business rules
    ├─────────────────────────────────────────────────────┤
    │   Models (SQLAlchemy ORM)                           │  ← Verein aggregate
    ├─────────────────────────────────────────────────────┤
    │   Database (async sessions)                         │  ← persistence
    └─────────────────────────────────────────────────────┘

    Both adapters call the same service methods and translate the shared
    exception taxonomy (exceptions.py) into their own error format.
"""

__version__ = "1.0.0"
