"""In-memory sample services: route guide, echo, user cache, user provider and a mock REST backend."""

__version__ = "1.0.0"

__all__ = ["echo", "mockbackend", "routeguide", "usercache", "userprovider"]