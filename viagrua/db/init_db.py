import logging

from viagrua.db.session import engine
from viagrua.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create all tables that do not exist yet (development bootstrap)."""
    # Registers every model on Base.metadata
    import viagrua.db.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
