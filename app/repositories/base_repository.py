"""
Base repository for synced records.

Provides the id-keyed operations every synced table needs. Subclasses only
set ``model_class``.
"""
from typing import Any, Dict, Generic, Iterable, List, Optional, Set, Tuple, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import Sku, SyncCheckpoint, WebOrder, WebProduct

# Generic type for id-keyed models
T = TypeVar('T', WebProduct, Sku, WebOrder, SyncCheckpoint)


class BaseRepository(Generic[T]):
    """
    Base repository providing find/upsert/count by string primary key.

    Subclasses must define:
        - model_class: The SQLAlchemy model class

    Example:
        class WebProductRepository(BaseRepository[WebProduct]):
            model_class = WebProduct
    """

    model_class: Type[T] = None  # Must be set by subclass

    def __init__(self, db: Session):
        self.db = db
        if self.model_class is None:
            raise NotImplementedError(
                f"{self.__class__.__name__} must define model_class attribute"
            )

    def get(self, record_id: str) -> Optional[T]:
        return self.db.get(self.model_class, record_id)

    def existing_ids(self, record_ids: Iterable[str]) -> Set[str]:
        """Subset of ``record_ids`` already stored."""
        ids = list(record_ids)
        if not ids:
            return set()
        rows = self.db.execute(
            select(self.model_class.id).where(self.model_class.id.in_(ids))
        ).scalars()
        return set(rows)

    def upsert(self, record_id: str, fields: Dict[str, Any]) -> Tuple[T, bool]:
        """
        Insert or update one record by id.

        Only the given fields are written; columns not named keep their
        stored value.

        Returns:
            (record, created)
        """
        record = self.get(record_id)
        created = record is None
        if created:
            record = self.model_class(id=record_id)
            self.db.add(record)
        for key, value in fields.items():
            setattr(record, key, value)
        self.db.flush()
        return record, created

    def count(self, **filters) -> int:
        query = select(func.count()).select_from(self.model_class)
        for key, value in filters.items():
            query = query.where(getattr(self.model_class, key) == value)
        return self.db.execute(query).scalar_one()

    def list_all(self, limit: int = 100, offset: int = 0) -> List[T]:
        return self.db.query(self.model_class).order_by(
            self.model_class.id
        ).offset(offset).limit(limit).all()
