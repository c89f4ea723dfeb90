import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

import config
import schemas
from database import Base, engine, get_db
from errors import AppError, InvalidTokenError, UserNotFoundError
from repositories import TaskRepository, UserRepository
from security import PasswordHasher, TokenIssuer
from services import AuthService, TaskService

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

password_hasher = PasswordHasher()
token_issuer = TokenIssuer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    yield


# Initialize app
app = FastAPI(title="Task Manager", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


# Service dependencies
def get_password_hasher() -> PasswordHasher:
    return password_hasher


def get_token_issuer() -> TokenIssuer:
    return token_issuer


def get_auth_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    return AuthService(UserRepository(db), hasher, tokens)


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(TaskRepository(db))


# Get current user
def get_current_user(
    token: str = Depends(oauth2_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
    auth: AuthService = Depends(get_auth_service),
) -> schemas.UserProfile:
    user_id = tokens.verify(token)
    try:
        return auth.get_user_from_token_payload(user_id)
    except UserNotFoundError as exc:
        # a valid signature for an account that no longer exists
        raise InvalidTokenError() from exc


@app.get("/health")
def health():
    return {"status": "ok"}


# Auth
@app.post("/api/auth/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, auth: AuthService = Depends(get_auth_service)):
    return auth.register_user(user.email, user.password, user.name)


@app.post("/api/auth/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.UserLogin, auth: AuthService = Depends(get_auth_service)):
    return auth.login_user(credentials.email, credentials.password)


@app.post("/api/auth/refresh", response_model=schemas.TokenResponse)
def refresh(body: schemas.RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    return {"token": auth.refresh_token(body.token)}


@app.get("/api/auth/me", response_model=schemas.UserProfile)
def get_profile(current_user: schemas.UserProfile = Depends(get_current_user)):
    return current_user


# Tasks
@app.post("/api/tasks", response_model=schemas.TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: schemas.TaskCreate,
    tasks: TaskService = Depends(get_task_service),
    user: schemas.UserProfile = Depends(get_current_user),
):
    return tasks.create_task(user.id, task)


@app.get("/api/tasks", response_model=schemas.TaskList)
def list_tasks(
    completed: Optional[bool] = None,
    tasks: TaskService = Depends(get_task_service),
    user: schemas.UserProfile = Depends(get_current_user),
):
    return {"tasks": tasks.list_tasks(user.id, completed=completed)}


@app.get("/api/tasks/{task_id}", response_model=schemas.TaskOut)
def get_task(
    task_id: int,
    tasks: TaskService = Depends(get_task_service),
    user: schemas.UserProfile = Depends(get_current_user),
):
    return tasks.get_task(user.id, task_id)


@app.put("/api/tasks/{task_id}", response_model=schemas.TaskOut)
def update_task(
    task_id: int,
    task: schemas.TaskUpdate,
    tasks: TaskService = Depends(get_task_service),
    user: schemas.UserProfile = Depends(get_current_user),
):
    return tasks.update_task(user.id, task_id, task)


@app.patch("/api/tasks/{task_id}/complete", response_model=schemas.TaskOut)
def mark_task_done(
    task_id: int,
    tasks: TaskService = Depends(get_task_service),
    user: schemas.UserProfile = Depends(get_current_user),
):
    return tasks.complete_task(user.id, task_id)


@app.delete("/api/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    tasks: TaskService = Depends(get_task_service),
    user: schemas.UserProfile = Depends(get_current_user),
):
    tasks.delete_task(user.id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
