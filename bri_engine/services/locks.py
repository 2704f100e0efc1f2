"""
Per-company recalculation lock (Redis).

Serializes snapshot creation for one company so snapshots are appended in
the order their triggering events were processed. If Redis itself is
unreachable the lock fails open, like the circuit breaker does elsewhere.
"""
import logging
from contextlib import contextmanager

import redis

from bri_engine import extensions
from bri_engine.config import RECALC_LOCK_TIMEOUT, RECALC_LOCK_WAIT

logger = logging.getLogger('services.locks')

PREFIX = 'recalc'


class LockTimeoutError(Exception):
    """Raised when another recalculation holds the company lock for too long."""
    def __init__(self, company_id, waited):
        self.company_id = company_id
        self.waited = waited
        super().__init__(f"Timed out after {waited}s waiting for recalculation lock on company {company_id}")


def lock_key(company_id):
    return f'{PREFIX}:{company_id}'


@contextmanager
def company_lock(company_id, timeout=RECALC_LOCK_TIMEOUT, wait=RECALC_LOCK_WAIT):
    """Hold the recalculation lock for company_id for the duration of the block."""
    lock = None
    try:
        lock = extensions.redis_client.lock(lock_key(company_id), timeout=timeout, blocking_timeout=wait)
        acquired = lock.acquire()
    except redis.RedisError as e:
        logger.warning("Recalc lock unavailable for company %s, proceeding unlocked: %s", company_id, e)
        lock, acquired = None, False

    if lock is not None and not acquired:
        raise LockTimeoutError(company_id, wait)

    try:
        yield
    finally:
        if acquired:
            try:
                lock.release()
            except redis.RedisError as e:
                # Expired (timeout elapsed) or Redis went away; the key clears itself
                logger.warning("Failed to release recalc lock for company %s: %s", company_id, e)
