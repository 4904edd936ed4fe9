"""Services Layer — the imperative shell: ledger session and photo orchestration.

Invariants:
    - Services call core functions for every decision and own all IO
    - One LedgerSession per running app

Design Decisions:
    - Session object injected into routes, never a module-level global
"""
