"""Infrastructure Layer — storage adapters and cross-cutting concerns.

Invariants:
    - Adapters implement the Protocols in core/repository_protocols.py
    - Every storage call maps failures to typed errors (StorageError, PhotoStoreError)

Design Decisions:
    - Thin adapters over SQLAlchemy; core never sees a database session
"""
