# gatewaysamples

Small backend services for trying out an API gateway. Each one keeps its
data in memory, so it starts at once and behaves the same way every time.
Only the standard library is used; Python 3.10 or later is required.

## Route guide: `gatewaysamples.routeguide`

Values: `Point` (E7 coordinates, degrees times 10**7), `Rectangle`,
`Feature`, `RouteNote` and `RouteSummary`.

`RouteGuideServer(features)` offers:

- `get_feature(point)`: the feature at that point, or an unnamed `Feature`
  located there when nothing is known;
- `list_features(rect)`: yields every feature inside the rectangle, edges
  included;
- `record_route(points)`: a `RouteSummary` with the number of points, the
  number of known features visited, the total distance in metres and the
  elapsed whole seconds;
- `route_chat(notes)`: for each incoming note, yields every note recorded
  so far at the same location, that note included.

Helpers: `calc_distance(p1, p2)` (haversine distance in whole metres),
`in_range(point, rect)`, `serialize(point)` (`"latitude longitude"`),
`to_radians(num)`, `random_point(rng)` (whole-degree coordinates) and
`load_features(path)`, which reads a JSON list of features from a file.

```python
from gatewaysamples.routeguide import Point, RouteGuideServer, load_features

server = RouteGuideServer(load_features("route_guide_db.json"))
print(server.get_feature(Point(409146138, -746188906)).name)
```

## Echo: `gatewaysamples.echo`

`EchoServer(server_id, stream_interval=0.1)` answers `EchoRequest` values
with `EchoResponse` values that carry the server id, a nanosecond
timestamp, `reflection_enabled=True` and the request's metadata:

- `echo(request)`: one reply with the same message;
- `stream_echo(request)`: yields five replies, `"[1] message"` to
  `"[5] message"`, pausing `stream_interval` seconds after each;
- `client_stream_echo(requests)`: one reply,
  `"Received N messages: [a b c]"`, with the last request's metadata;
- `bidirectional_echo(requests)`: yields one reply per request.

`resolve_server_id(server_id)` returns the given id, else the host name,
else `"unknown"`.

## User cache: `gatewaysamples.usercache`

`UserDB` is a thread-safe store of `User` records (`id`, `name`, `age`,
`time`) keyed by name; `default_db()` holds the users `tc` and `ic`.
`handle_user(db, method, path, query, body)` returns a `Response`:

- `GET /user/<name>` or `GET /user/?name=<name>`: the user as JSON, or 404;
- `POST /user/`: stores the posted user under a fresh random five-letter id
  (`rand_seq`) and returns it, or `{"message":"data is exist"}` when the
  name is already taken.

`make_app(db)` wraps this as a WSGI application. Run it on port 1314
(`--host` and `--port` change the address):

    gatewaysamples-user-server

## User provider: `gatewaysamples.userprovider`

`default_provider()` returns a `UserProvider` holding users 1 (`Kenway`)
and 2 (`Ken`). `get_user(0)` lists both, any other known id returns that
user, and an unknown id gives a `GetUserResponse` with the message
`user not found` and no users.

```python
from gatewaysamples.userprovider import default_provider

print(default_provider().get_user(1).message)  # user(s) query successfully
```

## Mock REST backend: `gatewaysamples.mockbackend`

`Backend` serves five sample users and five posts:

| Method | Path                    | Backend method  |
|--------|-------------------------|-----------------|
| GET    | `/api/users/{id}`       | `get_user`      |
| GET    | `/api/users/search`     | `search_users`  |
| POST   | `/api/users`            | `create_user`   |
| GET    | `/api/users/{id}/posts` | `user_posts`    |
| GET    | `/api/health`           | `health`        |
| GET    | `/`                     | `root`          |

`dispatch(method, path, query, body)` routes a request and returns a
`Response`, adding permissive CORS headers to matched routes; a known path
with the wrong method gives 405 and an unknown path 404. `make_app(backend)`
wraps it as a WSGI application. Run it on port 8081 (`--host` and `--port`
change the address):

    gatewaysamples-mock-backend

## What is not included

The route guide, echo and user provider services are plain Python classes
called in-process. The package has no network server or command for them
and speaks no RPC wire protocol; only the user cache and the mock backend
are served over HTTP.