"""Tests for the read-only employee directory client."""
import httpx
import pytest

from shiftbook import employee_client
from shiftbook.config import DirectoryConfig
from shiftbook.employee_client import EmployeeDirectoryClient

BASE = "https://people.example.com/api/v1"


class FakeTransport:
    """Replaces httpx.request and replays queued responses or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        return httpx.Response(status, json=body, request=httpx.Request(method, url))


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(employee_client, "sleep", lambda _s: None)
    return EmployeeDirectoryClient(DirectoryConfig(base_url=BASE, api_key="k", timeout_s=5.0))


class TestFetchEmployee:
    def test_found(self, client, monkeypatch):
        transport = FakeTransport((200, {"status": "success", "data": {"id": "E-1", "name": "Anna"}}))
        monkeypatch.setattr(httpx, "request", transport)
        assert client.fetch_employee("E-1") == {"id": "E-1", "name": "Anna"}
        method, url, kwargs = transport.calls[0]
        assert (method, url) == ("GET", f"{BASE}/employees/E-1")
        assert kwargs["headers"]["Authorization"] == "Bearer k"

    def test_not_found(self, client, monkeypatch):
        monkeypatch.setattr(httpx, "request", FakeTransport((404, {"message": "No employee"})))
        assert client.exists("E-404") is False

    def test_reference_is_escaped(self, client, monkeypatch):
        transport = FakeTransport((200, {"id": "a/b"}))
        monkeypatch.setattr(httpx, "request", transport)
        assert client.exists("a/b")
        assert transport.calls[0][1] == f"{BASE}/employees/a%2Fb"

    def test_retries_server_errors(self, client, monkeypatch):
        transport = FakeTransport((503, {}), (200, {"id": "E-1"}))
        monkeypatch.setattr(httpx, "request", transport)
        assert client.exists("E-1")
        assert len(transport.calls) == 2

    def test_retries_timeouts_then_raises(self, client, monkeypatch):
        transport = FakeTransport(*(httpx.ConnectTimeout("slow") for _ in range(3)))
        monkeypatch.setattr(httpx, "request", transport)
        with pytest.raises(httpx.TimeoutException):
            client.exists("E-1")
        assert len(transport.calls) == 3

    def test_client_errors_not_retried(self, client, monkeypatch):
        transport = FakeTransport((401, {"error": "unauthorized"}))
        monkeypatch.setattr(httpx, "request", transport)
        with pytest.raises(httpx.HTTPStatusError):
            client.exists("E-1")
        assert len(transport.calls) == 1


class TestListEmployees:
    def test_envelope(self, client, monkeypatch):
        body = {"status": "success", "data": {"employees": [{"id": "E-1"}, {"id": "E-2"}]}}
        transport = FakeTransport((200, body))
        monkeypatch.setattr(httpx, "request", transport)
        assert [e["id"] for e in client.list_employees()] == ["E-1", "E-2"]
        assert transport.calls[0][2]["params"] == {"role": "employee"}

    def test_plain_list(self, client, monkeypatch):
        monkeypatch.setattr(httpx, "request", FakeTransport((200, [{"id": "E-1"}])))
        assert client.list_employees() == [{"id": "E-1"}]

    def test_unknown_operation_rejected(self, client):
        with pytest.raises(ValueError):
            client._request(operation="delete_employee")
