"""
SQL-backed ConfigStore over the model_configs table.

One row per key; upsert() updates the row in place or inserts it.  Database
errors are logged, the session is rolled back, and the error is re-raised so
the caller sees a failed save rather than a silently stale config.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from adaptive_edge.models import ModelConfig
from adaptive_edge.services.config_manager import ConfigStore

logger = logging.getLogger(__name__)


class SqlConfigStore(ConfigStore):
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        row = self.db.query(ModelConfig).filter(ModelConfig.key == key).first()
        if row is None or not isinstance(row.value, dict):
            return None
        return row.value

    def upsert(self, key: str, value: Dict[str, Any]) -> None:
        try:
            row = self.db.query(ModelConfig).filter(ModelConfig.key == key).first()
            if row is None:
                self.db.add(ModelConfig(key=key, value=value))
            else:
                row.value = value
            self.db.commit()
        except Exception as exc:
            logger.error("Could not persist config %r: %s", key, exc, exc_info=True)
            self.db.rollback()
            raise
