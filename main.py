#!/usr/bin/env python3
"""
Vocabulary review engine
Main application entry point: prepares the database and prints a learner dashboard
"""

import logging
import sys

from lexireview.config import get_settings
from lexireview.database import init_db
from lexireview.review_service import ReviewService
from lexireview.utils import format_language_stats, format_progress_stats


def main(argv: list[str]) -> int:
    """Main application entry point"""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting vocabulary review engine...")

    db_manager = init_db()

    if len(argv) < 2:
        print(f"Usage: {argv[0]} <learner_id>")
        return 1

    learner_id = argv[1]
    service = ReviewService(lambda: learner_id, db_manager=db_manager, settings=settings)

    progress = service.get_progress()
    if progress is None:
        logger.error(f"Learner {learner_id} is not allowed to use the engine")
        return 1

    print(format_progress_stats(progress))
    for stats in service.get_all_language_stats():
        print(format_language_stats(stats))
    overview = service.get_today_overview()
    print(f"Today: {overview['due_count']} due, {overview['learning_count']} learning")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
