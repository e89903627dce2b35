"""Fill weeks of random ratings for every staff node."""
import argparse
import logging
import sys

from core.database import SessionLocal
from rating.service import generate_mock_ratings
import models_bootstrap

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--weeks", type=int, default=24)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        created = generate_mock_ratings(db, weeks=args.weeks)
    finally:
        db.close()
    logger.info("%d ratings created", created)
    return 0


if __name__ == "__main__":
    sys.exit(main())
