import json
from datetime import timedelta

import pytest
from django.core.cache import cache
from django.test import Client
from django.utils import timezone

from social.models import Message, User

PASSWORD = "Str0ng-Passw0rd!"


@pytest.fixture(autouse=True)
def plain_http(settings):
    """Tests talk plain HTTP to the test client."""
    settings.SECURE_SSL_REDIRECT = False


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def make_user(db):
    """Factory creating accounts with empty relation sets."""
    def _make_user(username, email=None, full_name="", **extra):
        return User.objects.create_user(
            username=username,
            email=email or f"{username}@example.com",
            password=PASSWORD,
            full_name=full_name,
            **extra,
        )
    return _make_user


@pytest.fixture()
def alice(make_user):
    return make_user("alice", full_name="Alice Liddell")


@pytest.fixture()
def bob(make_user):
    return make_user("bob", full_name="Bob Builder")


@pytest.fixture()
def carol(make_user):
    return make_user("carol", full_name="Carol Danvers")


@pytest.fixture()
def make_message(db):
    """Factory writing a direct message with an explicit age in minutes."""
    base = timezone.now()

    def _make_message(sender, receiver, content, minutes_ago=0, **extra):
        return Message.objects.create(
            sender_email=sender.email,
            sender_username=sender.username,
            receiver_email=receiver.email,
            receiver_username=receiver.username,
            content=content,
            timestamp=base - timedelta(minutes=minutes_ago),
            is_delivered=True,
            **extra,
        )
    return _make_message


class ApiClient(Client):
    """Django test client that sends and decodes JSON."""

    def post_json(self, path, data=None):
        return self.post(path, data=json.dumps(data or {}), content_type="application/json")

    def put_json(self, path, data=None):
        return self.put(path, data=json.dumps(data or {}), content_type="application/json")


@pytest.fixture()
def api_client():
    return ApiClient()


@pytest.fixture()
def client_for():
    """Factory returning an API client logged in as the given user."""
    def _client_for(user):
        c = ApiClient()
        c.force_login(user)
        return c
    return _client_for
