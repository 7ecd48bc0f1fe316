"""Re-run scoring and occupation suggestions from stored answers.

Usage:
    python reprocess_profiles.py              # every user with stored sections
    python reprocess_profiles.py USER [USER]  # only the given users
"""

import logging
import sys

from config import get_config
from database import Base, SessionLocal, engine
from logging_setup import configure_logging
from persistence import PersistenceGateway
from processing import process_and_save_profile
import models  # noqa: F401

logger = logging.getLogger(__name__)


def reprocess(user_ids=None, assessment_id=None):
    """Return (processed, failed) counts."""
    assessment_id = assessment_id or get_config().assessment.default_assessment_id
    db = SessionLocal()
    processed = failed = 0
    try:
        if not user_ids:
            user_ids = PersistenceGateway(db).users_with_sections(assessment_id)
        for user_id in user_ids:
            result = process_and_save_profile(db, user_id, assessment_id)
            if result.success:
                processed += 1
            else:
                failed += 1
                logger.error("Reprocessing failed for user %s at %s: %s", user_id, result.failed_step, result.error)
    finally:
        db.close()
    return processed, failed


if __name__ == "__main__":
    configure_logging(get_config().logging.level)
    Base.metadata.create_all(bind=engine)
    ok, bad = reprocess(sys.argv[1:])
    print(f"Reprocessed {ok} profiles, {bad} failed.")
    sys.exit(1 if bad else 0)
