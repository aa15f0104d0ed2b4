import asyncio
import os
import tempfile

import pytest

# certichain reads its settings at import time
_DB_DIR = tempfile.mkdtemp(prefix="certichain-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["DATA_DIR"] = _DB_DIR
os.environ["LEDGER_BACKEND"] = "memory"
os.environ["SECRET_KEY"] = "test-secret"

from certichain.core.config import settings as _settings  # noqa: E402
from certichain.db.session import engine  # noqa: E402
from certichain.models import Base  # noqa: E402
from certichain.services.memory_ledger import InMemoryLedger  # noqa: E402

OWNER = "0x1111111111111111111111111111111111111111"
INSTITUTION = "0x2222222222222222222222222222222222222222"
OTHER_INSTITUTION = "0x3333333333333333333333333333333333333333"
STUDENT = "0x4444444444444444444444444444444444444444"

JANE = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "course": "BSc Physics",
    "enrollment_date": "2020-09-01",
}


Base.metadata.create_all(bind=engine)


@pytest.fixture
def settings():
    return _settings.model_copy(update={"LEDGER_TIMEOUT_SECONDS": 1.0})


@pytest.fixture
def owner_ledger():
    """Owner view of a fresh ledger with INSTITUTION already registered."""
    ledger = InMemoryLedger(OWNER, clock=lambda: 1_700_000_000)
    asyncio.run(ledger.register_institution(INSTITUTION, "Test University"))
    return ledger


@pytest.fixture
def ledger(owner_ledger):
    """The same ledger, sending writes as INSTITUTION."""
    return owner_ledger.connect(INSTITUTION)
