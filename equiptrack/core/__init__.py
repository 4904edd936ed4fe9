"""Core Layer — pure ledger logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Transitions never mutate their inputs

Design Decisions:
    - Functional core separated from imperative shell (services/ owns IO)
"""
