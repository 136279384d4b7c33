from decimal import Decimal

import httpx

from expenses_service.services.currency import CurrencyConverter


def _converter(http_client):
    return CurrencyConverter(http_client, base_url="http://rates.test")


def test_same_currency_skips_remote_call(remote, http_client):
    amount, rate = _converter(http_client).convert(Decimal("12.50"), "eur", "EUR")
    assert (amount, rate) == (Decimal("12.50"), Decimal("1"))
    assert remote.requests == []


def test_converts_with_provider_rate(remote, http_client):
    remote.rates[("USD", "EUR")] = 0.5
    amount, rate = _converter(http_client).convert(Decimal("100"), "USD", "EUR")

    assert amount == Decimal("50.00")
    assert rate == Decimal("0.5")
    request = remote.requests[0]
    assert request.url.path == "/latest"
    assert request.url.params["from"] == "USD"
    assert request.url.params["to"] == "EUR"


def test_unknown_pair_falls_back_to_one_to_one(remote, http_client):
    amount, rate = _converter(http_client).convert(Decimal("100"), "USD", "EUR")
    assert (amount, rate) == (Decimal("100"), Decimal("1"))


def test_network_failure_falls_back_to_one_to_one(remote, http_client):
    remote.down = True
    amount, rate = _converter(http_client).convert(Decimal("42"), "GBP", "EUR")
    assert (amount, rate) == (Decimal("42"), Decimal("1"))


def test_malformed_response_falls_back_to_one_to_one():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"rates": None})))
    amount, rate = CurrencyConverter(client, base_url="http://rates.test").convert(Decimal("7"), "USD", "EUR")
    assert (amount, rate) == (Decimal("7"), Decimal("1"))
