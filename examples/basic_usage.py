"""examples/basic_usage.py - ctxlog in both modes.

Demonstrates:
    Scenario A - SimpleLogger: records go straight to stdout as JSON lines.
    Scenario B - ContextLogger: debug records are held back and only appear,
                 relabelled as INFO, when the flow logs an error.

Run:
    python examples/basic_usage.py
    CTXLOG_PRETTY=1 python examples/basic_usage.py   # rich console output
"""

from ctxlog import (
    LoggerSetup,
    create_context_logger,
    create_logger,
    log_scope,
)


class InsufficientFunds(Exception):
    """Payment error that contributes extra fields to its log record."""

    def __init__(self, balance: int, amount: int) -> None:
        super().__init__(f"balance={balance}, requested={amount}")
        self.balance = balance
        self.amount = amount

    def to_dict(self) -> dict:
        return {"balance": self.balance, "amount": self.amount}


# ===========================================================================
# Scenario A: direct logging
# ===========================================================================

simple = create_logger(LoggerSetup.from_env(name="example.simple"))

simple.debug({"name": "config.loaded"})          # below INFO: dropped
simple.info({"name": "service.started", "details": "port 8080"})
simple.warn({"name": "cache.cold"})


# ===========================================================================
# Scenario B: context-scoped logging
# ===========================================================================

logger = create_context_logger(
    LoggerSetup.from_env(
        name="example.context",
        log_attachments=lambda: {"service": "payments"},
    )
)


def get_balance(user_id: int) -> int:
    logger.debug({"name": "db.query", "details": f"SELECT balance WHERE user_id={user_id}"})
    return 3_000


@log_scope(logger)
def pay(user_id: int, amount: int) -> None:
    logger.info({"name": "payment.attempt", "user_id": user_id, "amount": amount})
    balance = get_balance(user_id)
    logger.debug({"name": "balance.checked", "balance": balance})
    if balance < amount:
        raise InsufficientFunds(balance, amount)
    logger.info({"name": "payment.succeeded", "user_id": user_id})


if __name__ == "__main__":
    print("\n--- successful payment: debug records are discarded ---")
    pay(1, 500)

    print("\n--- failed payment: error first, then the debug trail at INFO ---")
    try:
        pay(2, 5_000)
    except InsufficientFunds:
        pass
