import io
import json
import re
from wsgiref.util import setup_testing_defaults

import pytest

from gatewaysamples.mockbackend import Backend, make_app

RFC3339 = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(Z|[+-]\d{2}:\d{2})$")


@pytest.fixture
def backend():
    return Backend()


def body_of(response):
    return json.loads(response.body)


def test_get_user_with_profile(backend):
    response = backend.get_user(1, True)
    assert response.status == 200
    data = body_of(response)
    assert data["id"] == 1
    assert data["name"] == "Alice Johnson"
    assert data["profile"] == "Software Engineer at TechCorp"


def test_get_user_without_profile_leaves_store_intact(backend):
    assert "profile" not in body_of(backend.get_user(1, False))
    assert body_of(backend.get_user(1, True))["profile"] == "Software Engineer at TechCorp"


def test_get_missing_user(backend):
    response = backend.get_user(99)
    assert response.status == 404
    assert response.body == b"User not found\n"


def test_dispatch_get_user_adds_cors(backend):
    response = backend.dispatch("GET", "/api/users/1", "include_profile=true")
    assert response.status == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Content-Type"] == "application/json"
    assert response.body.endswith(b"\n")
    assert body_of(response)["profile"] == "Software Engineer at TechCorp"


def test_dispatch_rejects_oversized_id(backend):
    response = backend.dispatch("GET", "/api/users/99999999999999999999")
    assert response.status == 400
    assert response.body == b"Invalid user ID\n"


def test_search_alice(backend):
    data = body_of(backend.search_users("alice", 1, 10))
    assert [user["name"] for user in data["users"]] == ["Alice Johnson"]
    assert data["total"] == 1
    assert data["page"] == 1
    assert data["limit"] == 10
    assert data["total_pages"] == 1


def test_search_requires_query(backend):
    response = backend.search_users("")
    assert response.status == 400
    assert response.body == b"Query parameter 'q' is required\n"


def test_search_pagination(backend):
    data = body_of(backend.search_users("example.com", 3, 2))
    assert [user["id"] for user in data["users"]] == [5]
    assert data["total"] == 5
    assert data["total_pages"] == 3


def test_search_page_beyond_end(backend):
    data = body_of(backend.search_users("example.com", 9, 2))
    assert data["users"] == []
    assert data["total"] == 5


@pytest.mark.parametrize("limit", [0, 101, -4])
def test_search_bad_limit_falls_back(backend, limit):
    assert body_of(backend.search_users("bob", 1, limit))["limit"] == 10


def test_search_no_match(backend):
    data = body_of(backend.search_users("nobody"))
    assert data["users"] == []
    assert data["total"] == 0
    assert data["total_pages"] == 0


def test_dispatch_search_bad_page_defaults(backend):
    data = body_of(backend.dispatch("GET", "/api/users/search", "q=BOB&page=abc&limit=x"))
    assert data["page"] == 1
    assert data["limit"] == 10
    assert data["users"][0]["email"] == "bob@example.com"


def test_create_user(backend):
    body = json.dumps({"name": "Test User", "email": "test1@example.com", "age": 25})
    response = backend.create_user(body.encode())
    assert response.status == 201
    data = body_of(response)
    assert data["id"] == 6
    assert data["name"] == "Test User"
    assert data["email"] == "test1@example.com"
    assert data["age"] == 25
    assert RFC3339.match(data["created_at"])
    assert body_of(backend.health())["users"] == 6


def test_create_user_ids_increase(backend):
    first = body_of(backend.create_user(b'{"name":"A","email":"a1@example.com"}'))
    second = body_of(backend.create_user(b'{"name":"B","email":"b1@example.com"}'))
    assert (first["id"], second["id"]) == (6, 7)
    assert "age" not in first


def test_create_duplicate_email(backend):
    response = backend.create_user(b'{"name":"Alice","email":"alice@example.com"}')
    assert response.status == 409
    assert response.body == b"Email already exists\n"


@pytest.mark.parametrize("body", [b"", b"not json", b'{"name":"A","email":"a@example.com","age":2.5}', b"[1]"])
def test_create_invalid_json(backend, body):
    response = backend.create_user(body)
    assert response.status == 400
    assert response.body == b"Invalid JSON\n"


def test_create_missing_fields(backend):
    response = backend.create_user(b'{"name":"Only Name"}')
    assert response.status == 400
    assert response.body == b"Name and email are required\n"


def test_create_escapes_html(backend):
    response = backend.create_user(b'{"name":"<b>","email":"html@example.com"}')
    assert b"\\u003cb\\u003e" in response.body
    assert body_of(response)["name"] == "<b>"


def test_user_posts_default_published(backend):
    data = body_of(backend.user_posts(1))
    assert data["count"] == 2
    assert data["status"] == "published"
    assert data["user_id"] == 1
    assert [post["id"] for post in data["posts"]] == [1, 2]


def test_user_posts_empty_is_null(backend):
    data = body_of(backend.user_posts(3))
    assert data["count"] == 0
    assert data["posts"] is None


def test_user_posts_by_status(backend):
    assert body_of(backend.user_posts(3, "draft"))["count"] == 1
    assert body_of(backend.user_posts(3, "all"))["count"] == 1


def test_health(backend):
    data = body_of(backend.health())
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert data["users"] == 5
    assert data["posts"] == 5
    assert RFC3339.match(data["timestamp"])


def test_root_key_order(backend):
    data = body_of(backend.root())
    assert list(data) == ["endpoints", "message", "version"]
    assert data["message"] == "Mock Backend Server"
    assert data["endpoints"]["health"] == "/api/health"


def test_dispatch_unknown_path(backend):
    response = backend.dispatch("GET", "/nowhere")
    assert response.status == 404
    assert response.body == b"404 page not found\n"


@pytest.mark.parametrize("method,path", [("POST", "/api/health"), ("OPTIONS", "/api/users"), ("GET", "/api/users")])
def test_dispatch_method_not_allowed(backend, method, path):
    response = backend.dispatch(method, path)
    assert response.status == 405
    assert response.body == b""


def test_wsgi_app_creates_user(backend):
    app = make_app(backend)
    payload = b'{"name":"Wsgi","email":"wsgi@example.com"}'
    environ = {}
    setup_testing_defaults(environ)
    environ.update(
        REQUEST_METHOD="POST",
        PATH_INFO="/api/users",
        CONTENT_LENGTH=str(len(payload)),
    )
    environ["wsgi.input"] = io.BytesIO(payload)
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    assert captured["status"] == "201 Created"
    assert captured["headers"]["Content-Length"] == str(len(body))
    assert json.loads(body)["email"] == "wsgi@example.com"