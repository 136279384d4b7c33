import httpx

from expenses_service.services.circuit_breaker import BreakerState, CircuitBreaker
from expenses_service.services.group_membership import MembershipGuard


def _guard(handler, clock, base_url="http://groups.test"):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    breaker = CircuitBreaker("groups-service", clock=clock)
    return MembershipGuard(client, breaker, base_url=base_url), breaker


def test_member_is_allowed(remote, http_client, breaker):
    guard = MembershipGuard(http_client, breaker, base_url="http://groups.test")
    assert guard.is_member("trip", "paco") is True
    assert remote.requests[0].url.path == "/api/v1/groups/trip/members/paco"


def test_404_means_not_member_and_is_not_a_failure(remote, http_client, breaker):
    remote.members[("trip", "mallory")] = False
    guard = MembershipGuard(http_client, breaker, base_url="http://groups.test")

    for _ in range(5):
        assert guard.is_member("trip", "mallory") is False
    assert breaker.state == BreakerState.CLOSED
    assert breaker.failure_rate() == 0.0


def test_server_error_falls_back_to_permissive(clock):
    guard, breaker = _guard(lambda request: httpx.Response(500), clock)
    assert guard.is_member("trip", "paco") is True
    assert breaker.failure_rate() == 1.0


def test_open_circuit_does_not_call_remote(clock):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectTimeout("timed out", request=request)

    guard, breaker = _guard(handler, clock)
    assert guard.is_member("trip", "paco") is True
    assert breaker.state == BreakerState.OPEN

    assert guard.is_member("trip", "pepe") is True
    assert len(calls) == 1


def test_recovers_after_cooldown(clock):
    state = {"down": True}

    def handler(request):
        if state["down"]:
            return httpx.Response(503)
        return httpx.Response(404)

    guard, breaker = _guard(handler, clock)
    guard.is_member("trip", "paco")
    assert breaker.state == BreakerState.OPEN

    state["down"] = False
    clock.advance(10)
    assert guard.is_member("trip", "paco") is False
    assert breaker.state == BreakerState.CLOSED


def test_malformed_body_counts_as_failure(clock):
    guard, breaker = _guard(lambda request: httpx.Response(200, content=b"<html>"), clock)
    assert guard.is_member("trip", "paco") is True
    assert breaker.failure_rate() == 1.0


def test_missing_service_url_is_permissive(clock):
    calls = []
    guard, _ = _guard(lambda request: calls.append(request) or httpx.Response(200), clock, base_url=None)
    assert guard.is_member("trip", "paco") is True
    assert calls == []
