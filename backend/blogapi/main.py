"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the blog backend. Controllers
are intentionally thin: they accept requests, delegate to services, and
return JSON responses. Domain errors raised by services are rendered as
`{"error": "..."}` bodies by the exception handlers registered below.

Endpoints implemented:
- GET/POST /api/users, GET/PUT/DELETE /api/users/{id}
- GET/POST /api/posts, GET/PUT/DELETE /api/posts/{id}
- GET /api/posts/user/{userId}
- GET/POST /api/posts/{postId}/comments
- DELETE /api/posts/{postId}/comments/{id}
- GET/POST /api/directory/users, GET /api/directory/users/{id}
- GET /greeting, GET /calculator, GET /system-info
- GET /create-dynamic, GET /api/reflection/inspect-class
- GET /health
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, List, Optional
import json
import logging
import time
import uuid

from fastapi import FastAPI, Depends, Path, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session

from .config import settings
from .database import create_db_and_tables, get_session
from . import errors, models, registry, schemas, services
from .utils.calculator import InvalidOperatorError, calculate
from .utils.system_info import system_info as collect_system_info

# ids beyond SQLite's signed 64-bit INTEGER range are rejected with 422
EntityId = Annotated[int, Path(ge=1, le=schemas.MAX_ID)]

logger = logging.getLogger("blogapi.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield


app = FastAPI(title="Blog API", lifespan=lifespan)
_user_directory = services.InMemoryUserService()

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
    return response


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(errors.NotFoundError)
async def not_found_handler(request: Request, exc: errors.NotFoundError):
    return _error(404, str(exc) or "Resource not found")


@app.exception_handler(registry.UnknownTypeError)
async def unknown_type_handler(request: Request, exc: registry.UnknownTypeError):
    return _error(404, str(exc))


@app.exception_handler(errors.ConflictError)
async def conflict_handler(request: Request, exc: errors.ConflictError):
    return _error(409, str(exc))


@app.exception_handler(InvalidOperatorError)
async def invalid_operator_handler(request: Request, exc: InvalidOperatorError):
    return _error(400, str(exc))


@app.exception_handler(ZeroDivisionError)
async def division_handler(request: Request, exc: ZeroDivisionError):
    return _error(400, "Arithmetic error: division by zero")


# --- users -----------------------------------------------------------------

@app.get('/api/users', response_model=List[schemas.UserOut])
def get_all_users(role: Optional[models.UserRole] = None, db: Session = Depends(get_session)):
    """List all users, optionally restricted to one `role`."""
    return [schemas.UserOut.from_model(u) for u in services.UserService(db).get_all_users(role)]


@app.get('/api/users/{user_id}', response_model=schemas.UserOut)
def get_user_by_id(user_id: EntityId, db: Session = Depends(get_session)):
    return schemas.UserOut.from_model(services.UserService(db).get_user_by_id(user_id))


@app.post('/api/users', response_model=schemas.UserOut, status_code=201)
def create_user(payload: schemas.UserIn, db: Session = Depends(get_session)):
    """Create a user. The id is generated and the password is stored hashed."""
    return schemas.UserOut.from_model(services.UserService(db).create_user(payload))


@app.put('/api/users/{user_id}', response_model=schemas.UserOut)
def update_user(user_id: EntityId, payload: schemas.UserIn, db: Session = Depends(get_session)):
    """Replace every field of the user except its id and creation time."""
    return schemas.UserOut.from_model(services.UserService(db).update_user(user_id, payload))


@app.delete('/api/users/{user_id}', status_code=204)
def delete_user(user_id: EntityId, db: Session = Depends(get_session)):
    services.UserService(db).delete_user(user_id)
    return Response(status_code=204)


# --- posts -----------------------------------------------------------------

@app.get('/api/posts', response_model=List[schemas.PostOut])
def get_all_posts(db: Session = Depends(get_session)):
    """List all posts with their authors, newest first."""
    return [schemas.PostOut.from_model(p, a) for p, a in services.PostService(db).get_all_posts()]


@app.get('/api/posts/user/{user_id}', response_model=List[schemas.PostOut])
def get_posts_by_user(user_id: EntityId, db: Session = Depends(get_session)):
    return [schemas.PostOut.from_model(p, a) for p, a in services.PostService(db).get_posts_by_user(user_id)]


@app.get('/api/posts/{post_id}', response_model=schemas.PostOut)
def get_post_by_id(post_id: EntityId, db: Session = Depends(get_session)):
    post, author = services.PostService(db).get_post_by_id(post_id)
    return schemas.PostOut.from_model(post, author)


@app.post('/api/posts', response_model=schemas.PostOut, status_code=201)
def create_post(payload: schemas.PostIn, db: Session = Depends(get_session)):
    """Create a post. Returns 404 when `authorId` does not name a user."""
    post, author = services.PostService(db).create_post(payload.title, payload.content, payload.author_id)
    return schemas.PostOut.from_model(post, author)


@app.put('/api/posts/{post_id}', response_model=schemas.PostOut)
def update_post(post_id: EntityId, payload: schemas.PostUpdate, db: Session = Depends(get_session)):
    """Replace a post's title and content.

    The author and creation time are kept; `updatedAt` is refreshed.
    """
    post, author = services.PostService(db).update_post(post_id, payload.title, payload.content)
    return schemas.PostOut.from_model(post, author)


@app.delete('/api/posts/{post_id}', status_code=204)
def delete_post(post_id: EntityId, db: Session = Depends(get_session)):
    services.PostService(db).delete_post(post_id)
    return Response(status_code=204)


# --- comments --------------------------------------------------------------

@app.get('/api/posts/{post_id}/comments', response_model=List[schemas.CommentOut])
def get_comments_by_post(post_id: EntityId, db: Session = Depends(get_session)):
    """List a post's comments with their authors, oldest first."""
    rows = services.CommentService(db).get_comments_by_post(post_id)
    return [schemas.CommentOut.from_model(c, a) for c, a in rows]


@app.post('/api/posts/{post_id}/comments', response_model=schemas.CommentOut, status_code=201)
def add_comment(post_id: EntityId, payload: schemas.CommentIn, db: Session = Depends(get_session)):
    comment, author = services.CommentService(db).add_comment(post_id, payload.author_id, payload.content)
    return schemas.CommentOut.from_model(comment, author)


@app.delete('/api/posts/{post_id}/comments/{comment_id}', status_code=204)
def delete_comment(post_id: EntityId, comment_id: EntityId, db: Session = Depends(get_session)):
    """Delete a comment by id. Unknown ids are ignored."""
    services.CommentService(db).delete_comment(comment_id)
    return Response(status_code=204)


# --- in-memory user directory ----------------------------------------------

@app.get('/api/directory/users', response_model=List[schemas.UserDTO])
def get_directory_users():
    return _user_directory.get_users()


@app.get('/api/directory/users/{user_id}', response_model=schemas.UserDTO)
def get_directory_user(user_id: int):
    user = _user_directory.get_user_by_id(user_id)
    if user is None:
        raise errors.NotFoundError(f"User not found with id: {user_id}")
    return user


@app.post('/api/directory/users', response_model=schemas.UserDTO, status_code=201)
def create_directory_user(payload: schemas.UserDTO):
    return _user_directory.create_user(payload)


# --- demo utilities --------------------------------------------------------

@app.get('/greeting')
def greeting(name: str = "World"):
    return {"message": f"Hello, {name}!", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get('/calculator', response_model=schemas.CalculationOut)
def calculator(a: int = 0, b: int = 0, op: str = "add"):
    """Apply `op` (add, sub, mul, div) to two integers."""
    return {"result": calculate(a, b, op)}


@app.get('/system-info')
def system_info():
    return collect_system_info()


@app.get('/create-dynamic')
def create_dynamic(class_name: str = Query(alias="className")):
    """Build a default instance of a registered type."""
    return registry.create_instance(class_name).model_dump(by_alias=True)


@app.get('/api/reflection/inspect-class', response_model=schemas.TypeDescriptionOut)
def inspect_class(class_name: str = Query(alias="className")):
    return registry.describe_type(class_name)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
