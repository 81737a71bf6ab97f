# billing/locks.py
import logging
from contextlib import contextmanager

from django.conf import settings
from django.core.cache import caches

from .exceptions import SchedulerLocked

logger = logging.getLogger(__name__)

LOCK_CACHE = 'locks'


def lock_key(name):
    return f'netbill:job-lock:{name}'


@contextmanager
def job_lock(name, timeout=None):
    """Run-lock for scheduled jobs, keyed by job name.

    ``add`` only writes when the key is absent, so a second run started
    while the first holds the lock raises SchedulerLocked. The ``locks``
    cache is shared across processes (database table or Redis).
    """
    cache = caches[LOCK_CACHE]
    key = lock_key(name)
    timeout = timeout or settings.SCHEDULER_LOCK_TIMEOUT

    if not cache.add(key, 'locked', timeout):
        logger.warning(f"Skipping {name}: previous run still holds the lock")
        raise SchedulerLocked(name)
    try:
        yield
    finally:
        cache.delete(key)
