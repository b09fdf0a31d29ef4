import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from . import config, readings
from .models import utcnow

logger = logging.getLogger(__name__)

def one_year_before(moment: datetime) -> datetime:
    """Same month and day one year earlier.

    Feb 29 has no counterpart in a common year and rolls over to Mar 1.
    """
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        return moment.replace(year=moment.year - 1, day=28) + timedelta(days=1)

async def purge_expired(db: AsyncSession, now: Optional[datetime] = None) -> int:
    cutoff = one_year_before(now or utcnow())
    deleted = await readings.purge_older_than(db, cutoff)
    if deleted:
        logger.info("Retention purge removed %d readings older than %s", deleted, cutoff.isoformat())
    else:
        logger.debug("Retention purge: nothing older than %s", cutoff.isoformat())
    return deleted

class RetentionScheduler:
    """Runs ``purge_expired`` now and then once per ``interval`` seconds."""

    def __init__(self, session_factory, interval: float = config.RETENTION_INTERVAL_SECONDS):
        self.session_factory = session_factory
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Optional[int]:
        try:
            async with self.session_factory() as db:
                return await purge_expired(db)
        except Exception:
            logger.exception("Retention purge failed; retrying next cycle")
            return None

    async def _loop(self):
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)

    def start(self):
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._loop())
        return self._task

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
