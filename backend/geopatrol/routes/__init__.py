# Routes package init
"""
GeoPatrol Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:     POST /api/register, POST /api/login
    - reports.py:  POST /api/laporan, GET /api/laporan   (bearer token)
    - health.py:   GET /, GET /health, GET /init-db

Design Principle:
    Routes are THIN. They pull fields out of the request, call a service,
    and pick the status code. Validation and error translation live in
    the services; error formatting lives in the global handlers.
"""
