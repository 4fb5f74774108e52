"""Key/value store factory."""

from celeiro.config import Settings
from celeiro.logger import get_logger
from celeiro.transient.base import KeyValueStore
from celeiro.transient.memory import MemoryStore
from celeiro.transient.redis_store import RedisStore

logger = get_logger(__name__)


def create_store(settings: Settings, clock=None) -> KeyValueStore:
    """Create the configured store.

    Args:
        settings: Application settings. An empty REDIS_HOST selects the
            in-memory store.
        clock: Optional clock for the in-memory store

    Returns:
        KeyValueStore instance
    """
    if not settings.REDIS_HOST:
        logger.info("using in-memory key/value store")
        return MemoryStore(clock=clock)

    logger.info("using redis key/value store", host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    return RedisStore.from_settings(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD,
        db=settings.REDIS_DB,
    )
