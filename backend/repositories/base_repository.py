"""
Base repository providing common CRUD operations.
"""

from typing import Generic, TypeVar, List, Optional, Type
from sqlalchemy.orm import Session

T = TypeVar('T')


class BaseRepository(Generic[T]):
    """
    Generic base repository providing common CRUD operations.
    All specific repositories should inherit from this class.
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize the repository.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def add(self, obj: T) -> T:
        """
        Stage a new record and flush it so generated keys are populated.

        Args:
            obj: Model instance to create

        Returns:
            The same instance, with its primary key set
        """
        self.db.add(obj)
        self.db.flush()
        return obj

    def get_by_id(self, id: int) -> Optional[T]:
        """
        Retrieve a record by its primary key.

        Returns:
            Model instance or None if not found
        """
        return self.db.get(self.model, id)

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[T]:
        query = self.db.query(self.model).order_by(self.model.id)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def count(self) -> int:
        return self.db.query(self.model).count()

    def exists(self, id: int) -> bool:
        return self.get_by_id(id) is not None

    def delete(self, obj: T) -> None:
        """
        Delete a record from the database.

        Args:
            obj: Model instance to delete
        """
        self.db.delete(obj)
        self.db.flush()
