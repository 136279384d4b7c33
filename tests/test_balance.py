from decimal import Decimal

from expenses_service.services.ledger import ExpenseEntry, SettlementEntry
from expenses_service.utils.balance import (
    balances_to_json,
    calculate_group_balances,
    generate_payments,
)


def _expense(payer, total, **shares):
    return ExpenseEntry(
        payer_id=payer,
        total_amount=Decimal(str(total)),
        shares=tuple((uid, Decimal(str(amount))) for uid, amount in shares.items()),
    )


# =========================
# NET-БАЛАНСЫ
# =========================

def test_payer_in_own_shares_is_owed_the_rest():
    balances = calculate_group_balances([_expense("paco", 100, paco=50, pepe=50)])
    assert balances == {"paco": Decimal("50.00"), "pepe": Decimal("-50.00")}


def test_no_records_yield_empty_map():
    assert calculate_group_balances([]) == {}


def test_settlement_cancels_prior_imbalance():
    entries = [
        _expense("paco", 100, paco=50, pepe=50),
        SettlementEntry(from_user_id="pepe", to_user_id="paco", amount=Decimal("50")),
    ]
    balances = calculate_group_balances(entries)
    assert balances == {"paco": Decimal("0.00"), "pepe": Decimal("0.00")}
    assert generate_payments(balances) == []


def test_balances_sum_to_zero_and_are_rounded():
    entries = [
        _expense("a", "10.00", a="3.33", b="3.33", c="3.34"),
        _expense("b", "7.10", a="2.37", c="4.73"),
        _expense("c", "0.01", a="0.01"),
    ]
    balances = calculate_group_balances(entries)
    assert sum(balances.values()) == Decimal("0")
    for value in balances.values():
        assert value == value.quantize(Decimal("0.01"))


def test_balances_to_json_gives_floats():
    assert balances_to_json({"a": Decimal("1.50")}) == {"a": 1.5}


# =========================
# ПЛАН ПЕРЕВОДОВ
# =========================

def test_single_pair_gives_one_payment():
    payments = generate_payments({"Paco": 50, "Paloma": -50})
    assert payments == [{"from": "Paloma", "to": "Paco", "amount": 50.0}]


def test_zero_balance_is_excluded_as_dust():
    payments = generate_payments({"A": -10, "B": 0, "C": 10})
    assert payments == [{"from": "A", "to": "C", "amount": 10.0}]


def test_star_topology_pays_single_creditor():
    payments = generate_payments({"Carlos": 100, "Ana": -60, "Luis": -40})
    assert len(payments) == 2
    assert all(p["to"] == "Carlos" for p in payments)
    assert sum(p["amount"] for p in payments) == 100
    # крупнейший должник платит первым
    assert payments[0] == {"from": "Ana", "to": "Carlos", "amount": 60.0}


def test_balances_within_one_cent_are_ignored():
    assert generate_payments({"a": Decimal("0.01"), "b": Decimal("-0.01")}) == []


def test_empty_balances_give_no_payments():
    assert generate_payments({}) == []


def test_executing_payments_settles_everyone():
    balances = {
        "a": Decimal("45.50"),
        "b": Decimal("-20.25"),
        "c": Decimal("30.00"),
        "d": Decimal("-33.25"),
        "e": Decimal("-22.00"),
    }
    payments = generate_payments(balances)

    debtors = sum(1 for v in balances.values() if v < 0)
    creditors = sum(1 for v in balances.values() if v > 0)
    assert len(payments) <= debtors + creditors - 1

    residual = dict(balances)
    for p in payments:
        assert p["amount"] > 0
        residual[p["from"]] += Decimal(str(p["amount"]))
        residual[p["to"]] -= Decimal(str(p["amount"]))
    assert all(abs(v) <= Decimal("0.01") for v in residual.values())


def test_ties_are_broken_by_user_id():
    payments = generate_payments({"b": -10, "a": -10, "z": 20})
    assert [p["from"] for p in payments] == ["a", "b"]
