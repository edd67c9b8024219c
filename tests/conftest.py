"""Shared fixtures: a fake HTTP transport in front of a real client"""

import json
from unittest.mock import Mock

import pytest
import requests

from meetpoint.api.client import MeetPointClient
from meetpoint.api.token_store import MemoryTokenStore
from meetpoint.services.session_manager import SessionManager

BASE_URL = "http://api.test/api"


def make_response(status=200, json_body=None, text=None, reason="OK"):
    """Build a real requests.Response without touching the network"""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.encoding = "utf-8"
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    elif text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = b""
    return response


@pytest.fixture
def http():
    """Stand-in for requests.Session; set .request.return_value / side_effect"""
    session = Mock(spec=requests.Session)
    session.request.return_value = make_response(200, {})
    return session


@pytest.fixture
def token_store():
    return MemoryTokenStore()


@pytest.fixture
def client(http, token_store):
    return MeetPointClient(base_url=BASE_URL, token_store=token_store, session=http)


@pytest.fixture
def session(client):
    return SessionManager(client)


def last_call(http):
    """kwargs of the most recent request made through the fake transport"""
    return http.request.call_args.kwargs
