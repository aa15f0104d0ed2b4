# certichain/core/metrics.py
from prometheus_client import Counter

VERDICTS = Counter(
    "certichain_verdicts_total",
    "Verification verdicts returned, by status.",
    ["status"],
)

LEDGER_WRITES = Counter(
    "certichain_ledger_writes_total",
    "State-changing ledger requests, by operation and outcome.",
    ["operation", "outcome"],
)
