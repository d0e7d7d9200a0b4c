"""
Base repository with generic CRUD operations.
"""

import uuid
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from plinth.models.db import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository for a single model class.

    Repositories never commit; the caller owns the transaction. ``create`` and
    ``update`` flush so generated ids and constraint violations surface early.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new instance.

        Args:
            **kwargs: Column values

        Returns:
            Created instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get instance by primary key.

        Args:
            id: Primary key

        Returns:
            Instance or None
        """
        return self.session.get(self.model, id)

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[ModelType]:
        query = self.session.query(self.model).offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def update(self, id: uuid.UUID, **kwargs: Any) -> Optional[ModelType]:
        """
        Update an instance by primary key.

        Args:
            id: Primary key
            **kwargs: Column values to set

        Returns:
            Updated instance or None if it does not exist
        """
        instance = self.get(id)
        if instance is None:
            return None
        for key, value in kwargs.items():
            setattr(instance, key, value)
        self.session.flush()
        return instance

    def delete(self, id: uuid.UUID) -> bool:
        """
        Delete an instance by primary key.

        Returns:
            True if a row was deleted
        """
        instance = self.get(id)
        if instance is None:
            return False
        self.session.delete(instance)
        self.session.flush()
        return True

    def count(self) -> int:
        return self.session.query(self.model).count()
