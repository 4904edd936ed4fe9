"""Root conftest — shared test configuration."""

import os

# Ensure tests never open the developer's local ledger database
os.environ.setdefault("EQUIPTRACK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EQUIPTRACK_APPROVAL_DELAY_SECONDS", "0")
