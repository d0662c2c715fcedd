import pytest

from gatewaysamples.userprovider import (
    MSG_USER_NOT_FOUND,
    MSG_USER_QUERY_SUCCESSFULLY,
    GetUserResponse,
    User,
    UserProvider,
    default_provider,
)


@pytest.fixture
def provider():
    return default_provider()


def test_get_without_id_lists_both_users(provider):
    response = provider.get_user()
    assert response.message == "user(s) query successfully"
    assert len(response.users) == 2
    assert response.users[0].user_id == 1
    assert response.users[0].name == "Kenway"
    assert response.users[1].user_id == 2
    assert response.users[1].name == "Ken"


def test_get_with_id_zero_is_same_as_listing(provider):
    assert provider.get_user(0) == provider.get_user()


def test_get_user_one(provider):
    response = provider.get_user(1)
    assert response.message == "user(s) query successfully"
    assert len(response.users) == 1
    assert response.users[0].user_id == 1
    assert response.users[0].name == "Kenway"


def test_get_user_two(provider):
    response = provider.get_user(2)
    assert response == GetUserResponse(MSG_USER_QUERY_SUCCESSFULLY, [User(2, "Ken")])


def test_unknown_user_is_not_found(provider):
    response = provider.get_user(3)
    assert response.message == MSG_USER_NOT_FOUND
    assert response.users == []


def test_listing_on_empty_provider_keeps_slots():
    response = UserProvider().get_user(0)
    assert response.message == MSG_USER_QUERY_SUCCESSFULLY
    assert response.users == [None, None]


def test_custom_users_are_served():
    provider = UserProvider([User(7, "Seven")])
    assert provider.get_user(7).users == [User(7, "Seven")]
    assert provider.get_user(1).message == MSG_USER_NOT_FOUND