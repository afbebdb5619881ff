"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import REVIEWER_ROLES, User
from controls_dispatch.infrastructure.models import UserModel


class UserRepository:
    """Read and register the users notifications are addressed to."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_map_by_ids(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = {user_id for user_id in user_ids if user_id}
        if not ids:
            return {}
        query = self.session.query(UserModel).filter(UserModel.id.in_(ids))
        return {model.id: self._to_entity(model) for model in query.all()}

    def list_reviewers(
        self, department: str | None, *, roles: Sequence[str] = REVIEWER_ROLES
    ) -> Sequence[User]:
        """Return active users holding a reviewer role in ``department``."""

        query = (
            self.session.query(UserModel)
            .filter(UserModel.is_active.is_(True))
            .filter(UserModel.role.in_(list(roles)))
        )
        if department:
            query = query.filter(UserModel.department == department)
        query = query.order_by(UserModel.name, UserModel.id)
        return [self._to_entity(model) for model in query.all()]

    def create(self, user: User) -> User:
        model = UserModel(
            name=user.name,
            email=user.email,
            role=user.role,
            department=user.department,
            is_active=user.is_active,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            role=model.role,
            department=model.department,
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )


__all__ = ["UserRepository"]
