from expenses_service.services.balance_cache import (
    SOURCE_CACHE,
    SOURCE_DATABASE,
    BalanceCache,
    balances_key,
)


def test_miss_then_hit(cache):
    balance_cache = BalanceCache(cache, ttl_seconds=60)
    computed = []

    def compute():
        computed.append(1)
        return {"balances": {"paco": 50.0}, "payments": []}

    data, source = balance_cache.get_or_compute("trip", compute)
    assert source == SOURCE_DATABASE
    assert data["balances"] == {"paco": 50.0}

    data, source = balance_cache.get_or_compute("trip", compute)
    assert source == SOURCE_CACHE
    assert data["balances"] == {"paco": 50.0}
    assert computed == [1]


def test_entry_expires_after_ttl(cache, clock):
    balance_cache = BalanceCache(cache, ttl_seconds=60)
    balance_cache.get_or_compute("trip", lambda: {"balances": {}, "payments": []})

    clock.advance(59)
    assert balance_cache.get_or_compute("trip", lambda: {})[1] == SOURCE_CACHE
    clock.advance(1)
    assert balance_cache.get_or_compute("trip", lambda: {"balances": {}, "payments": []})[1] == SOURCE_DATABASE


def test_invalidate_is_per_group_and_idempotent(cache):
    balance_cache = BalanceCache(cache)
    balance_cache.get_or_compute("trip", lambda: {"balances": {}, "payments": []})
    balance_cache.get_or_compute("flat", lambda: {"balances": {}, "payments": []})

    balance_cache.invalidate("trip")
    balance_cache.invalidate("trip")
    balance_cache.invalidate("never-cached")

    assert cache.get(balances_key("trip")) is None
    assert cache.get(balances_key("flat")) is not None
    assert len(cache) == 1
