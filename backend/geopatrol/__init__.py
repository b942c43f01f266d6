"""
GeoPatrol Backend — Application Package Initializer
====================================================

What: Courier delivery-confirmation API (auth, report submission, history).
Who:  Imported by uvicorn (`geopatrol.main:app`), Alembic, and pytest.

Architecture Note:
    The backend keeps the usual layered split:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Dependencies (Bearer token gate)  │  ← Session Token Verifier
    ├─────────────────────────────────────┤
    │    Services (Auth, Tokens, Reports) │  ← Validation, orchestration
    ├─────────────────────────────────────┤
    │  Repositories & Blob Store (Stores) │  ← SQLAlchemy / upload directory
    └─────────────────────────────────────┘

    Shared handles (engine, session factory, blob store, token service)
    are built by `create_app()` and hung on `app.state`; nothing below the
    route layer reaches for a module-level global.
"""

__version__ = "1.0.0"
