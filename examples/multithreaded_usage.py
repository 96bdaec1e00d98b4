"""examples/multithreaded_usage.py - Per-flow isolation across threads.

Two concurrent "requests" share one ContextLogger. Thread-B fails, and only
Thread-B's debug trail is replayed after its error. Thread-A succeeds, and its
debug records are never written anywhere.

Run:
    python examples/multithreaded_usage.py
"""

import threading
import time

from ctxlog import LoggerSetup, create_context_logger, log_scope

logger = create_context_logger(
    LoggerSetup(
        name="example.threads",
        log_attachments=lambda: {"thread": threading.current_thread().name},
    )
)


def fetch_inventory(product_id: int) -> int:
    logger.debug({"name": "inventory.fetch", "product_id": product_id})
    time.sleep(0.01)  # simulate DB latency
    stock = {1: 10, 2: 0, 3: 5}  # product 2 is out of stock
    return stock.get(product_id, 0)


@log_scope(logger)
def place_order(order_id: int, product_id: int, qty: int) -> dict:
    logger.info({"name": "order.received", "order_id": order_id})
    stock = fetch_inventory(product_id)
    logger.debug({"name": "stock.checked", "available": stock, "requested": qty})
    if stock < qty:
        raise RuntimeError(f"OutOfStock: product_id={product_id}")
    logger.info({"name": "order.placed", "order_id": order_id})
    return {"order_id": order_id, "status": "confirmed"}


def worker(order_id: int, product_id: int, qty: int) -> None:
    try:
        place_order(order_id, product_id, qty)
    except RuntimeError:
        pass


if __name__ == "__main__":
    threads = [
        threading.Thread(target=worker, args=(1001, 1, 3), name="Thread-A"),
        threading.Thread(target=worker, args=(1002, 2, 1), name="Thread-B"),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    print("\nOnly Thread-B's debug records were replayed; Thread-A's were dropped.")
