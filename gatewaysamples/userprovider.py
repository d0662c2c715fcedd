"""User provider service: look up one user by id, or the sample users."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

MSG_USER_NOT_FOUND = "user not found"
MSG_USER_QUERY_SUCCESSFULLY = "user(s) query successfully"

# Ids listed when a request asks for no particular user.
_LISTED_IDS = (1, 2)


@dataclass(frozen=True)
class User:
    """A user known to the provider."""

    user_id: int = 0
    name: str = ""


@dataclass
class GetUserResponse:
    """Result of a user query: a status message and the users found."""

    message: str = ""
    users: list[Optional[User]] = field(default_factory=list)


class UserProvider:
    """Answers user queries from an in-memory table."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[int, User] = {user.user_id: user for user in users}

    def get_user(self, user_id: int = 0) -> GetUserResponse:
        """Id 0 lists users 1 and 2; any other id returns that user or a not-found message."""
        if user_id == 0:
            return GetUserResponse(
                MSG_USER_QUERY_SUCCESSFULLY,
                [self._users.get(listed) for listed in _LISTED_IDS],
            )
        user = self._users.get(user_id)
        if user is None:
            return GetUserResponse(MSG_USER_NOT_FOUND)
        return GetUserResponse(MSG_USER_QUERY_SUCCESSFULLY, [user])


def default_provider() -> UserProvider:
    """A provider holding the two sample users."""
    return UserProvider([User(1, "Kenway"), User(2, "Ken")])