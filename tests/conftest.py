from __future__ import annotations

import pytest

from app import create_app
from auth import TOKEN_COOKIE
from config import TestConfig

PASSWORD = "pass1"


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    yield app
    app.extensions["store"].disconnect()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def store(app):
    return app.extensions["store"]


@pytest.fixture()
def auth_service(app):
    return app.extensions["auth_service"]


@pytest.fixture()
def profile_service(app):
    return app.extensions["profile_service"]


def register(client, username="alice", email="alice@example.com", password=PASSWORD):
    return client.post(
        "/user/register",
        json={"username": username, "email": email, "password": password},
    )


def login(client, username="alice", password=PASSWORD):
    return client.post("/user/login", json={"username": username, "password": password})


@pytest.fixture()
def logged_in_client(client):
    assert register(client).status_code == 201
    response = login(client)
    assert response.status_code == 200
    assert client.get_cookie(TOKEN_COOKIE) is not None
    return client


@pytest.fixture()
def user_id(logged_in_client, auth_service):
    token = logged_in_client.get_cookie(TOKEN_COOKIE).value
    return auth_service.verify(token)["user_id"]
