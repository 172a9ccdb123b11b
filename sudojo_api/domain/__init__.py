"""Domain layer (pure logic).

- Keep hint access and scoring rules here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no identity or billing calls.
- Prefer deterministic functions; configuration tables are passed in.
"""
