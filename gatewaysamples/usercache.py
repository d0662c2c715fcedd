"""A small user store served over HTTP at /user/."""

from __future__ import annotations

import argparse
import json
import logging
import random
import string
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional
from urllib.parse import parse_qs
from wsgiref.simple_server import make_server

log = logging.getLogger(__name__)

LETTERS = string.ascii_lowercase + string.ascii_uppercase
CONTENT_TYPE = "Content-Type"
JSON_UTF8 = "application/json;charset=UTF-8"
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
DEFAULT_PORT = 1314


def _lookup(mapping: dict, key: str) -> Any:
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for candidate, value in mapping.items():
        if candidate.lower() == lowered:
            return value
    return None


def _format_time(moment: datetime) -> str:
    """RFC 3339 with fractional seconds trimmed and "Z" for UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


def _parse_time(text: str) -> datetime:
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        raise ValueError(f"time {text!r} has no zone offset")
    return moment


@dataclass(frozen=True)
class User:
    """A user record keyed by name."""

    id: str = ""
    name: str = ""
    age: int = 0
    time: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "age": self.age, "time": _format_time(self.time)}

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes | str) -> "User":
        """Decode a user, matching keys without regard to case; other keys are ignored."""
        data = json.loads(raw)
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("json: cannot unmarshal non-object into User")
        user_id = _lookup(data, "id")
        name = _lookup(data, "name")
        age = _lookup(data, "age")
        moment = _lookup(data, "time")
        if user_id is not None and not isinstance(user_id, str):
            raise ValueError("json: cannot unmarshal into field User.id of type string")
        if name is not None and not isinstance(name, str):
            raise ValueError("json: cannot unmarshal into field User.name of type string")
        if age is not None and (isinstance(age, bool) or not isinstance(age, int)):
            raise ValueError("json: cannot unmarshal into field User.age of type int32")
        if age is not None and not -(2**31) <= age < 2**31:
            raise ValueError("json: age overflows int32")
        if moment is not None and not isinstance(moment, str):
            raise ValueError("json: cannot unmarshal into field User.time of type time")
        return cls(
            id=user_id or "",
            name=name or "",
            age=age or 0,
            time=_parse_time(moment) if moment is not None else ZERO_TIME,
        )


class UserDB:
    """Thread-safe store of users by name."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()
        for user in users:
            self.add(user)

    def add(self, user: User) -> bool:
        """Store the user under its name, replacing any earlier one."""
        with self._lock:
            self._users[user.name] = user
        return True

    def get(self, name: str) -> Optional[User]:
        """The user with that name, or None."""
        with self._lock:
            return self._users.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)


@dataclass
class Response:
    """An HTTP response: status code, headers and body."""

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def default_db() -> UserDB:
    """A store seeded with the two sample users."""
    seeded = datetime(2021, 8, 1, 10, 8, 41, tzinfo=timezone.utc)
    return UserDB([
        User(id="0001", name="tc", age=18, time=seeded),
        User(id="0002", name="ic", age=88, time=seeded),
    ])


def rand_seq(n: int, rng: Optional[random.Random] = None) -> str:
    """A random string of n ASCII letters."""
    source = rng if rng is not None else random
    return "".join(source.choice(LETTERS) for _ in range(n))


def _handle_post(db: UserDB, body: bytes) -> Response:
    written: list[bytes] = []
    try:
        user = User.from_json(body)
    except ValueError as exc:
        written.append(str(exc).encode("utf-8"))
        user = User()
    headers: dict[str, str] = {}

    def respond(payload: bytes) -> Response:
        # Headers only take effect when nothing has been written yet.
        if not written:
            headers[CONTENT_TYPE] = JSON_UTF8
        return Response(200, headers, b"".join(written) + payload)

    if db.get(user.name) is not None:
        return respond(b'{"message":"data is exist"}')
    user = replace(user, id=rand_seq(5))
    db.add(user)
    return respond(user.to_json())


def _handle_get(db: UserDB, path: str, query: str) -> Response:
    sub_path = path[len("/user/"):] if path.startswith("/user/") else path
    user_name = sub_path.split("/")[0]
    if user_name:
        log.info("paths: %s", user_name)
        user = db.get(user_name)
    else:
        values = parse_qs(query, keep_blank_values=True).get("name", [""])
        user = db.get(values[0])
    if user is not None:
        return Response(200, {CONTENT_TYPE: JSON_UTF8}, user.to_json())
    return Response(404, {}, b"")


def handle_user(
    db: UserDB, method: str, path: str, query: str = "", body: bytes = b""
) -> Response:
    """Serve one request under /user/: POST adds a user, GET looks one up."""
    verb = method.upper()
    if verb == "POST":
        return _handle_post(db, body)
    if verb == "GET":
        return _handle_get(db, path, query)
    return Response(200, {}, b"")


_REASONS = {200: "OK", 301: "Moved Permanently", 404: "Not Found"}


def make_app(db: Optional[UserDB] = None) -> Callable:
    """A WSGI application serving the user store."""
    store = db if db is not None else default_db()

    def app(environ, start_response):
        path = environ.get("PATH_INFO", "") or "/"
        method = environ.get("REQUEST_METHOD", "GET")
        query = environ.get("QUERY_STRING", "")
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        body = environ["wsgi.input"].read(length) if length > 0 else b""
        if path == "/user":
            response = Response(301, {"Location": "/user/"}, b"")
        elif path.startswith("/user/"):
            response = handle_user(store, method, path, query, body)
        else:
            response = Response(404, {"Content-Type": "text/plain; charset=utf-8"},
                                b"404 page not found\n")
        status = f"{response.status} {_REASONS.get(response.status, '')}".rstrip()
        headers = list(response.headers.items())
        headers.append(("Content-Length", str(len(response.body))))
        start_response(status, headers)
        return [response.body]

    return app


def main(argv: Optional[list[str]] = None) -> int:
    """Run the user store server."""
    parser = argparse.ArgumentParser(description="Sample user store HTTP server.")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    log.info("Starting sample server ...")
    with make_server(args.host, args.port, make_app(default_db())) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0