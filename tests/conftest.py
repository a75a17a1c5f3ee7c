import json as jsonlib
from decimal import Decimal

import pytest
from requests.cookies import RequestsCookieJar

from billing.config import Settings
from billing.core.exceptions import ExternalCollaboratorError
from billing.infrastructure.api.client import ApiClient, SessionStore
from billing.infrastructure.base import AccountLedger


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.content = b"" if body is None else jsonlib.dumps(body).encode()

    def json(self):
        if self._body is None:
            raise ValueError("no json body")
        return self._body


class FakeSession:
    """requests.Session stand-in replaying queued responses"""

    def __init__(self, responses=()):
        self.headers = {}
        self.cookies = RequestsCookieJar()
        self.calls = []
        self._routes = {}
        self._queue = list(responses)

    def route(self, method, path, *responses):
        self._routes.setdefault((method, path), []).extend(responses)

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "params": params,
            "json": json,
            "headers": dict(headers or {}),
            "timeout": timeout,
        })
        for (route_method, path), queued in self._routes.items():
            if route_method == method and url.endswith(path) and queued:
                response = queued.pop(0) if len(queued) > 1 else queued[0]
                break
        else:
            if not self._queue:
                raise AssertionError(f"unexpected request {method} {url}")
            response = self._queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingLedger(AccountLedger):
    """in-memory account ledger that can be told to fail"""

    def __init__(self, fail_times=0):
        self.credits = []
        self.balances = {}
        self.fail_times = fail_times

    def credit_account(self, account_id, amount, idempotency_key):
        if self.fail_times:
            self.fail_times -= 1
            raise ExternalCollaboratorError("ledger down", details={"account_id": account_id})
        if any(key == idempotency_key for _, _, key in self.credits):
            return
        self.credits.append((account_id, amount, idempotency_key))
        self.balances[account_id] = self.balances.get(account_id, Decimal("0.00")) + amount


@pytest.fixture
def settings():
    return Settings(api_base_url="http://billing.test/api", api_timeout=5)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def store():
    return SessionStore({SessionStore.TOKEN_KEY: "token-1"})


@pytest.fixture
def client(fake_session, store, settings):
    return ApiClient(session=fake_session, store=store, settings=settings)


@pytest.fixture
def ledger():
    return RecordingLedger()


@pytest.fixture
def scenario_items():
    return [{"productId": "p1", "name": "Rice 5kg", "quantity": 2, "price": "100.00"}]
