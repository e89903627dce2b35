"""Reset the organizations table to the demo admin -> staff ladder."""
import logging
import sys

from core.database import Base, SessionLocal, engine
from organization.service import seed_hierarchy
import models_bootstrap

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    Base.metadata.create_all(engine)
    db = SessionLocal()
    try:
        for node in seed_hierarchy(db):
            logger.info("created %s: %s", node.type.value, node.name)
    except Exception:
        logger.exception("hierarchy initialization failed")
        return 1
    finally:
        db.close()
    logger.info("hierarchy initialization completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
