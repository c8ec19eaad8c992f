# backend/vendor_search/services/search/executors.py
"""
Dedicated thread pool executor for search operations.

Tier queries, location lookups and taxonomy loads are blocking SQLAlchemy
calls. Running them on the default asyncio pool lets a burst of searches
starve every other endpoint, so search gets its own bounded pool:

1. Search blocking work has bounded concurrency
2. Other endpoints (health, metrics, suggestions) remain responsive
3. Under load, extra work queues here instead of on the event loop
"""
from concurrent.futures import ThreadPoolExecutor
import logging
import os

logger = logging.getLogger(__name__)

# Three tier queries plus resolver/normalizer per request; 8 keeps a couple of
# concurrent searches in flight without exhausting the DB pool.
SEARCH_BLOCKING_MAX_WORKERS = int(os.getenv("SEARCH_BLOCKING_MAX_WORKERS", "8"))

SEARCH_EXECUTOR = ThreadPoolExecutor(
    max_workers=SEARCH_BLOCKING_MAX_WORKERS,
    thread_name_prefix="search-blocking",
)

logger.info(
    "[EXECUTORS] Created dedicated search executor with %s workers", SEARCH_BLOCKING_MAX_WORKERS
)
