"""
Narrow persistence contracts over the SQLAlchemy session.

The services only talk to these classes; every task query carries the
owner's id so a task belonging to someone else behaves as missing.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import UserAlreadyRegisteredError
from models import Task, User
from schemas import UserProfile

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_profile(self, user_id: int) -> Optional[UserProfile]:
        # the password column is never selected
        row = (
            self.db.query(User.id, User.email, User.name, User.created_at)
            .filter(User.id == user_id)
            .first()
        )
        if row is None:
            return None
        return UserProfile(id=row.id, email=row.email, name=row.name, created_at=row.created_at)

    def create(self, email: str, password_hash: str, name: str) -> User:
        new_user = User(email=email, password=password_hash, name=name)
        self.db.add(new_user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Unique constraint rejected registration for %s", email)
            raise UserAlreadyRegisteredError() from exc
        self.db.refresh(new_user)
        return new_user


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: int, **fields) -> Task:
        new_task = Task(user_id=user_id, **fields)
        self.db.add(new_task)
        self.db.commit()
        self.db.refresh(new_task)
        return new_task

    def find_owned(self, task_id: int, user_id: int) -> Optional[Task]:
        return self.db.query(Task).filter(Task.id == task_id, Task.user_id == user_id).first()

    def list_owned(self, user_id: int, completed: Optional[bool] = None) -> List[Task]:
        query = self.db.query(Task).filter(Task.user_id == user_id)
        if completed is not None:
            query = query.filter(Task.completed == completed)
        return query.order_by(Task.created_at.desc(), Task.id.desc()).all()

    def update(self, task: Task, **fields) -> Task:
        for name, value in fields.items():
            setattr(task, name, value)
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.commit()
