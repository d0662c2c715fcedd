"""Mock REST backend with users, posts, search and a health check."""

from __future__ import annotations

import argparse
import json
import logging
import re
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from http import HTTPStatus
from typing import Any, Callable, Optional
from urllib.parse import parse_qs
from wsgiref.simple_server import make_server

log = logging.getLogger(__name__)

DEFAULT_PORT = 8081
VERSION = "1.0.0"
INT64_MAX = 2**63 - 1
INT64_MIN = -(2**63)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
_ID = r"(?P<id>[0-9]+)"
_ROUTES = (
    ("GET", re.compile(rf"/api/users/{_ID}"), "_route_get_user"),
    ("GET", re.compile(r"/api/users/search"), "_route_search"),
    ("POST", re.compile(r"/api/users"), "_route_create"),
    ("GET", re.compile(rf"/api/users/{_ID}/posts"), "_route_posts"),
    ("GET", re.compile(r"/api/health"), "_route_health"),
    ("GET", re.compile(r"/"), "_route_root"),
)
_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


@dataclass
class Response:
    """An HTTP response: status code, headers and body."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class User:
    """A user of the mock backend."""

    id: int
    name: str
    email: str
    age: int = 0
    profile: str = ""
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name, "email": self.email}
        if self.age:
            data["age"] = self.age
        if self.profile:
            data["profile"] = self.profile
        data["created_at"] = self.created_at
        return data


@dataclass(frozen=True)
class Post:
    """A post written by a user."""

    id: int
    user_id: int
    title: str
    content: str
    status: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "status": self.status,
            "created_at": self.created_at,
        }


SAMPLE_USERS = (
    User(1, "Alice Johnson", "alice@example.com", 28, "Software Engineer at TechCorp", "2023-01-15T10:30:00Z"),
    User(2, "Bob Smith", "bob@example.com", 32, "Product Manager at StartupXYZ", "2023-02-20T14:45:00Z"),
    User(3, "Charlie Brown", "charlie@example.com", 25, "Designer at CreativeStudio", "2023-03-10T09:15:00Z"),
    User(4, "Diana Prince", "diana@example.com", 30, "Data Scientist at DataCorp", "2023-04-05T16:20:00Z"),
    User(5, "Eve Wilson", "eve@example.com", 27, "DevOps Engineer at CloudTech", "2023-05-12T11:10:00Z"),
)

SAMPLE_POSTS = (
    Post(1, 1, "Getting Started with Go", "Go is a great language for backend development...", "published", "2023-06-01T10:00:00Z"),
    Post(2, 1, "Microservices Architecture", "Building scalable microservices...", "published", "2023-06-15T14:30:00Z"),
    Post(3, 2, "Product Management 101", "Essential skills for product managers...", "published", "2023-06-20T09:45:00Z"),
    Post(4, 3, "UI/UX Design Trends", "Latest trends in user interface design...", "draft", "2023-06-25T16:15:00Z"),
    Post(5, 4, "Data Analysis with Python", "Analyzing data using pandas and numpy...", "published", "2023-07-01T12:00:00Z"),
)


def _encode(payload: Any) -> bytes:
    """JSON with HTML-sensitive characters escaped and a trailing newline."""
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for raw, escaped in _HTML_ESCAPES:
        text = text.replace(raw, escaped)
    return (text + "\n").encode("utf-8")


def _json_response(payload: Any, status: int = 200) -> Response:
    return Response(status, {"Content-Type": "application/json"}, _encode(payload))


def _error(status: int, message: str) -> Response:
    headers = {
        "Content-Type": "text/plain; charset=utf-8",
        "X-Content-Type-Options": "nosniff",
    }
    return Response(status, headers, (message + "\n").encode("utf-8"))


def _now_rfc3339() -> str:
    text = datetime.now().astimezone().replace(microsecond=0).isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _atoi(text: str) -> tuple[int, bool]:
    """Parse a decimal integer; out-of-range values are clamped and flagged."""
    if not _INT_RE.fullmatch(text):
        return 0, False
    value = int(text)
    if value > INT64_MAX:
        return INT64_MAX, False
    if value < INT64_MIN:
        return INT64_MIN, False
    return value, True


def _lookup(mapping: dict, key: str) -> Any:
    if key in mapping:
        return mapping[key]
    for candidate, value in mapping.items():
        if candidate.lower() == key:
            return value
    return None


def _reject_constant(name: str) -> None:
    raise ValueError(f"invalid JSON constant {name}")


def _decode_create_request(body: bytes | str) -> tuple[str, str, int]:
    """Read name, email and age from the first JSON value of the body."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    text = text.lstrip(" \t\r\n")
    if not text:
        raise ValueError("empty body")
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    data, _ = decoder.raw_decode(text)
    if data is None:
        return "", "", 0
    if not isinstance(data, dict):
        raise ValueError("request must be an object")
    name = _lookup(data, "name")
    email = _lookup(data, "email")
    age = _lookup(data, "age")
    for value in (name, email):
        if value is not None and not isinstance(value, str):
            raise ValueError("name and email must be strings")
    if age is not None:
        if isinstance(age, bool) or not isinstance(age, int):
            raise ValueError("age must be an integer")
        if not INT64_MIN <= age <= INT64_MAX:
            raise ValueError("age out of range")
    return name or "", email or "", age or 0


class Backend:
    """In-memory users and posts served as a small JSON API."""

    def __init__(
        self,
        users: Optional[Iterable[User]] = None,
        posts: Optional[Iterable[Post]] = None,
        next_user_id: Optional[int] = None,
    ) -> None:
        self._users = list(SAMPLE_USERS if users is None else users)
        self._posts = list(SAMPLE_POSTS if posts is None else posts)
        if next_user_id is None:
            next_user_id = max((user.id for user in self._users), default=0) + 1
        self._next_user_id = next_user_id
        self._lock = threading.Lock()

    def get_user(self, user_id: int, include_profile: bool = False) -> Response:
        """The user with that id; the profile only when asked for."""
        with self._lock:
            user = next((u for u in self._users if u.id == user_id), None)
        if user is None:
            return _error(404, "User not found")
        if not include_profile:
            user = replace(user, profile="")
        log.debug("user : %s", user)
        return _json_response(user.to_dict())

    def search_users(self, query: str, page: int = 1, limit: int = 10) -> Response:
        """Users whose name or e-mail contains the query, one page at a time."""
        if not query:
            return _error(400, "Query parameter 'q' is required")
        if page < 1:
            page = 1
        if limit < 1 or limit > 100:
            limit = 10
        needle = query.lower()
        with self._lock:
            matches = [
                user for user in self._users
                if needle in user.name.lower() or needle in user.email.lower()
            ]
        total = len(matches)
        start = (page - 1) * limit
        page_users = [] if start >= total else matches[start:min(start + limit, total)]
        return _json_response({
            "users": [user.to_dict() for user in page_users],
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        })

    def create_user(self, body: bytes | str) -> Response:
        """Create a user from a JSON body holding name, email and optionally age."""
        try:
            name, email, age = _decode_create_request(body)
        except ValueError:
            return _error(400, "Invalid JSON")
        if not name or not email:
            return _error(400, "Name and email are required")
        with self._lock:
            if any(user.email == email for user in self._users):
                return _error(409, "Email already exists")
            user = User(self._next_user_id, name, email, age, created_at=_now_rfc3339())
            self._next_user_id += 1
            self._users.append(user)
        return _json_response(user.to_dict(), 201)

    def user_posts(self, user_id: int, status: str = "") -> Response:
        """A user's posts with the given status ("published" by default, "all" for any)."""
        if not status:
            status = "published"
        with self._lock:
            found = [
                post for post in self._posts
                if post.user_id == user_id and (status == "all" or post.status == status)
            ]
        return _json_response({
            "count": len(found),
            "posts": [post.to_dict() for post in found] if found else None,
            "status": status,
            "user_id": user_id,
        })

    def health(self) -> Response:
        """Service status with the number of users and posts."""
        with self._lock:
            user_count, post_count = len(self._users), len(self._posts)
        return _json_response({
            "posts": post_count,
            "status": "healthy",
            "timestamp": _now_rfc3339(),
            "users": user_count,
            "version": VERSION,
        })

    def root(self) -> Response:
        """A description of the available endpoints."""
        return _json_response({
            "endpoints": {
                "create_user": "/api/users",
                "health": "/api/health",
                "search": "/api/users/search?q={query}",
                "user_posts": "/api/users/{id}/posts",
                "users": "/api/users/{id}",
            },
            "message": "Mock Backend Server",
            "version": VERSION,
        })

    def dispatch(self, method: str, path: str, query: str = "", body: bytes = b"") -> Response:
        """Route one request to its handler, adding CORS headers to matched routes."""
        params = parse_qs(query, keep_blank_values=True)
        method_mismatch = False
        for route_method, pattern, handler_name in _ROUTES:
            match = pattern.fullmatch(path)
            if match is None:
                continue
            if route_method != method:
                method_mismatch = True
                continue
            start = time.monotonic()
            handler: Callable[..., Response] = getattr(self, handler_name)
            response = handler(match, params, body)
            response.headers = {**_CORS_HEADERS, **response.headers}
            log.info("%s %s %s", method, path, time.monotonic() - start)
            return response
        if method_mismatch:
            return Response(405, {}, b"")
        return _error(404, "404 page not found")

    @staticmethod
    def _first(params: dict[str, list[str]], key: str) -> str:
        return params.get(key, [""])[0]

    def _route_get_user(self, match, params, body) -> Response:
        user_id, ok = _atoi(match.group("id"))
        if not ok:
            return _error(400, "Invalid user ID")
        return self.get_user(user_id, self._first(params, "include_profile") == "true")

    def _route_search(self, match, params, body) -> Response:
        page, _ = _atoi(self._first(params, "page"))
        limit, _ = _atoi(self._first(params, "limit"))
        return self.search_users(self._first(params, "q"), page, limit)

    def _route_create(self, match, params, body) -> Response:
        return self.create_user(body)

    def _route_posts(self, match, params, body) -> Response:
        user_id, ok = _atoi(match.group("id"))
        if not ok:
            return _error(400, "Invalid user ID")
        return self.user_posts(user_id, self._first(params, "status"))

    def _route_health(self, match, params, body) -> Response:
        return self.health()

    def _route_root(self, match, params, body) -> Response:
        return self.root()


def make_app(backend: Optional[Backend] = None) -> Callable:
    """A WSGI application serving the backend."""
    service = backend if backend is not None else Backend()

    def app(environ, start_response):
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        body = environ["wsgi.input"].read(length) if length > 0 else b""
        response = service.dispatch(
            environ.get("REQUEST_METHOD", "GET"),
            environ.get("PATH_INFO", "") or "/",
            environ.get("QUERY_STRING", ""),
            body,
        )
        try:
            phrase = HTTPStatus(response.status).phrase
        except ValueError:
            phrase = ""
        headers = list(response.headers.items())
        headers.append(("Content-Length", str(len(response.body))))
        start_response(f"{response.status} {phrase}".rstrip(), headers)
        return [response.body]

    return app


def main(argv: Optional[list[str]] = None) -> int:
    """Run the mock backend server."""
    parser = argparse.ArgumentParser(description="Mock REST backend server.")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    print(f"🚀 Mock Backend Server starting on :{args.port}")
    print("📚 Available endpoints:")
    print("  GET  /api/users/{id}        - Get user by ID")
    print("  GET  /api/users/search      - Search users")
    print("  POST /api/users             - Create user")
    print("  GET  /api/users/{id}/posts  - Get user posts")
    print("  GET  /api/health            - Health check")
    print("  GET  /                      - Root endpoint")
    with make_server(args.host, args.port, make_app(Backend())) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0