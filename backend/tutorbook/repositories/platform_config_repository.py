"""Data access for the platform_config key/value table."""

from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.platform_config import PlatformConfig
from .base_repository import BaseRepository


class PlatformConfigRepository(BaseRepository[PlatformConfig]):
    def __init__(self, db: Session):
        super().__init__(db, PlatformConfig)

    def get_value(self, key: str) -> Optional[Any]:
        row = self.db.get(PlatformConfig, key)
        return None if row is None else row.value_json

    def upsert(self, key: str, value: Any) -> PlatformConfig:
        row = self.db.get(PlatformConfig, key)
        if row is None:
            row = PlatformConfig(key=key, value_json=value)
            self.db.add(row)
        else:
            row.value_json = value
        self.db.flush()
        return row
