"""
Persistence writer: inserts validated recommendations tagged with their run id.
Rows belonging to other runs are never touched.
"""

import logging

from .store import DataStore
from .types import Recommendation


logger = logging.getLogger(__name__)


class RecommendationWriter:

    def __init__(self, store: DataStore):
        self.store = store

    def write(self, run_id: int, recommendations: list[Recommendation]) -> int:
        """Insert recommendations for one run. Returns the number written. Raises PersistenceError."""
        if not recommendations:
            logger.info(f"Schedule run {run_id}: no recommendations to save")
            return 0

        written = self.store.insert_recommendations(run_id, recommendations)
        logger.info(f"Schedule run {run_id}: saved {written} recommendations")
        return written
