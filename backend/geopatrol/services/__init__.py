# Services package init
"""
GeoPatrol Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and stores.
How:   Services receive their handles (session, blob store, token service)
       through their constructors; route dependencies build them per request.

Service Inventory:
    - BlobStore (abstract): Interface for photo storage
    - LocalBlobStore: Upload-directory implementation (file_service.py)
    - TokenService: Issues and verifies bearer tokens
    - AuthService / PasswordHasher: Registration and login
    - ReportService: Report submission and history
"""
