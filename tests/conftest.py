"""Shared test fixtures."""

import json

import pytest

from osp_client.auth.discovery import DiscoveryDocument
from osp_client.auth.oauth_client import OAuthClient
from osp_client.auth.tokens import SessionState

HOST = "https://auth.example.com"
NOTIF_HOST = "https://notify.example.com"


class DictStore:
    """In-memory stand-in for the keychain store."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.fail_writes = False

    def get_item(self, key):
        return self.data.get(key)

    def set_item(self, key, value):
        if self.fail_writes:
            return False
        self.data[key] = value
        return True

    def remove_item(self, key):
        self.data.pop(key, None)
        return True

    def get_json(self, key):
        value = self.data.get(key)
        return json.loads(value) if value else None

    def set_json(self, key, value):
        return self.set_item(key, json.dumps(value))


@pytest.fixture
def store():
    return DictStore()


@pytest.fixture
def discovery():
    return DiscoveryDocument.from_host(HOST)


@pytest.fixture
def session(store):
    return SessionState(store)


@pytest.fixture
def oauth(discovery):
    client = OAuthClient(discovery)
    yield client
    client.close()
