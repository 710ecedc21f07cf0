"""Unit tests for transitops web route modules.

Routes are exercised through FastAPI's TestClient against the real app, with
``get_aggregate`` and ``get_db`` replaced via ``app.dependency_overrides``.
"""
