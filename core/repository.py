"""Repository helpers for user-owned rows.

Most tables carry a `user_id`; `UserScopedRepository` wraps the lookups
that services repeat for them (owned-by-user fetch, latest row per user)
and `save` keeps the add-commit-refresh boilerplate out of
route handlers.
"""

from sqlalchemy.orm import Session
from typing import TypeVar, Generic, Type, Optional, Any
from database.models import Base

T = TypeVar('T', bound=Base)


class UserScopedRepository(Generic[T]):
    """Lookups for a model that has a `user_id` column.

    Attributes:
        model: SQLAlchemy model class to operate on.
        session: Database session for executing queries.
    """

    def __init__(self, model: Type[T], session: Session):
        self.model = model
        self.session = session

    def get_owned(self, id: Any, user_id: int) -> Optional[T]:
        """Return the row only when it belongs to `user_id`.

        Rows owned by somebody else are reported as missing so their
        existence is not disclosed.
        """
        return (
            self.session.query(self.model)
            .filter(self.model.id == id, self.model.user_id == user_id)
            .first()
        )

    def latest_for_user(self, user_id: int, order_column=None) -> Optional[T]:
        """Return the user's most recent row by `order_column` (default `id`)."""
        column = order_column if order_column is not None else self.model.id
        return (
            self.session.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(column.desc(), self.model.id.desc())
            .first()
        )


def save(session: Session, obj: Base) -> Base:
    """Add, commit and refresh a single object.

    Args:
        session: Database session.
        obj: Model instance to persist.

    Returns:
        The persisted object with refreshed attributes.
    """
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj

