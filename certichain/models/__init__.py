# certichain/models/__init__.py
# Loads every model module so its table is registered on Base.metadata.
from certichain.db.base import Base  # noqa: F401

import certichain.models.audit         # noqa: F401
import certichain.models.ledger_event  # noqa: F401
import certichain.models.tokens        # noqa: F401

__all__: list[str] = ["Base"]
