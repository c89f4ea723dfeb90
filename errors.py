"""Error kinds raised by the services and mapped to HTTP status codes in main.py."""

from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request could not be processed"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class UserAlreadyRegisteredError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already registered"


class InvalidCredentialsError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid email or password"


class UserNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


class InvalidTokenError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired token"


class TaskNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Task not found"
