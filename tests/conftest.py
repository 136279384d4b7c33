from __future__ import annotations

from typing import Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from expenses_service.config import Settings
from expenses_service.db import Base, get_db
from expenses_service.main import create_app
from expenses_service.services.cache import InMemoryCache
from expenses_service.services.circuit_breaker import CircuitBreaker
from expenses_service.utils.service_dep import build_expense_service


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemote:
    """
    Подменяет rate provider и groups-service через httpx.MockTransport.
    rates: {(from, to): rate}; members: {(group, user): bool}; down: сеть «лежит».
    """

    def __init__(self):
        self.rates: Dict[tuple, float] = {}
        self.members: Dict[tuple, bool] = {}
        self.down = False
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.host == "rates.test":
            params = request.url.params
            key = (params["from"], params["to"])
            if key not in self.rates:
                return httpx.Response(404, json={"message": "not found"})
            amount = float(params["amount"])
            return httpx.Response(
                200,
                json={"amount": amount, "base": key[0], "rates": {key[1]: round(amount * self.rates[key], 2)}},
            )

        if request.url.host == "groups.test":
            # /api/v1/groups/{group}/members/{user}
            parts = request.url.path.strip("/").split("/")
            group_id, user_id = parts[3], parts[5]
            if self.members.get((group_id, user_id), True):
                return httpx.Response(200, json={"isMember": True})
            return httpx.Response(404, json={"message": "not a member"})

        return httpx.Response(500)

    def calls_to(self, host: str) -> int:
        return sum(1 for r in self.requests if r.url.host == host)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        settlement_currency="EUR",
        rates_api_url="http://rates.test",
        groups_service_url="http://groups.test",
        free_plan_expense_limit=3,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def http_client(remote):
    client = httpx.Client(transport=httpx.MockTransport(remote.handler))
    yield client
    client.close()


@pytest.fixture
def cache(clock) -> InMemoryCache:
    return InMemoryCache(clock=clock)


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker("groups-service", clock=clock)


@pytest.fixture
def service(settings, http_client, cache, breaker):
    return build_expense_service(settings, http_client, cache=cache, breaker=breaker)


@pytest.fixture
def api(settings, service, session_factory):
    app = create_app(settings, expense_service=service)

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as client:
        yield client


def expense_payload(**overrides) -> dict:
    payload = {
        "description": "Dinner in Rome",
        "total_amount": 100,
        "currency": "EUR",
        "payer_id": "paco",
        "group_id": "trip",
        "category": "FOOD",
        "shares": [
            {"user_id": "paco", "amount": 50},
            {"user_id": "pepe", "amount": 50},
        ],
    }
    payload.update(overrides)
    return payload
