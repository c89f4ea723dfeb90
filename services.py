"""
Auth and task services.

Both services raise the typed errors from ``errors``; translating those into
HTTP responses is left to the exception handler in ``main``.
"""

import logging
from typing import List, Optional

from errors import InvalidCredentialsError, InvalidTokenError, TaskNotFoundError, UserAlreadyRegisteredError, UserNotFoundError
from models import Task, User
from repositories import TaskRepository, UserRepository
from schemas import AuthResponse, TaskCreate, TaskUpdate, UserProfile, UserPublic
from security import PasswordHasher, TokenIssuer

logger = logging.getLogger(__name__)

# columns a client may set back to null
NULLABLE_TASK_FIELDS = {"description", "due_date"}


def mask_email(email: str) -> str:
    """``ana@x.com`` -> ``a***@x.com``"""
    local, sep, domain = email.partition("@")
    return f"{local[:1]}***{sep}{domain}"


class AuthService:
    def __init__(self, users: UserRepository, hasher: PasswordHasher, tokens: TokenIssuer):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens

    def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            token=self.tokens.sign(user.id),
            user=UserPublic(id=user.id, email=user.email, name=user.name),
        )

    def register_user(self, email: str, password: str, name: str) -> AuthResponse:
        if self.users.find_by_email(email) is not None:
            raise UserAlreadyRegisteredError()

        user = self.users.create(email=email, password_hash=self.hasher.hash(password), name=name)
        logger.info("Registered user %s", user.id)
        return self._auth_response(user)

    def login_user(self, email: str, password: str) -> AuthResponse:
        """Unknown email and wrong password fail with the same error."""
        user = self.users.find_by_email(email)
        if user is None or not self.hasher.verify(password, user.password):
            logger.warning("Rejected login for %s", mask_email(email))
            raise InvalidCredentialsError()

        logger.info("Login: user %s", user.id)
        return self._auth_response(user)

    def get_user_by_id(self, user_id: int) -> UserProfile:
        profile = self.users.find_profile(user_id)
        if profile is None:
            raise UserNotFoundError()
        return profile

    def get_user_from_token_payload(self, user_id: int) -> UserProfile:
        return self.get_user_by_id(user_id)

    def refresh_token(self, old_token: str) -> str:
        try:
            user_id = self.tokens.verify(old_token)
        except InvalidTokenError:
            logger.warning("Rejected token refresh")
            raise
        return self.tokens.sign(user_id)


class TaskService:
    def __init__(self, tasks: TaskRepository):
        self.tasks = tasks

    def create_task(self, user_id: int, data: TaskCreate) -> Task:
        task = self.tasks.create(user_id, **data.model_dump())
        logger.info("User %s created task %s", user_id, task.id)
        return task

    def get_task(self, user_id: int, task_id: int) -> Task:
        task = self.tasks.find_owned(task_id, user_id)
        if task is None:
            raise TaskNotFoundError()
        return task

    def list_tasks(self, user_id: int, completed: Optional[bool] = None) -> List[Task]:
        return self.tasks.list_owned(user_id, completed=completed)

    def update_task(self, user_id: int, task_id: int, changes: TaskUpdate) -> Task:
        task = self.get_task(user_id, task_id)
        fields = {
            name: value
            for name, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or name in NULLABLE_TASK_FIELDS
        }
        return self.tasks.update(task, **fields)

    def complete_task(self, user_id: int, task_id: int) -> Task:
        task = self.get_task(user_id, task_id)
        return self.tasks.update(task, completed=True)

    def delete_task(self, user_id: int, task_id: int) -> None:
        task = self.get_task(user_id, task_id)
        self.tasks.delete(task)
        logger.info("User %s deleted task %s", user_id, task_id)
