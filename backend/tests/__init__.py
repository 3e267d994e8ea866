"""
Pytest suite for the Binary Craft orders API.

Test categories:
- unit: pricing, cart store, limiter, client, auth helpers (no app)
- integration: services against an in-memory SQLite session
- api: full FastAPI app over httpx ASGITransport
"""
