from decimal import Decimal

from splitledger.core.money import minimal_unit, qround, to_money
from splitledger.core.utils import simplify_debts


def test_simplify_debts_two_debtors_one_creditor():
    transfers = simplify_debts({1: Decimal("60"), 2: Decimal("-30"), 3: Decimal("-30")})

    assert transfers == [(2, 1, Decimal("30")), (3, 1, Decimal("30"))]


def test_simplify_debts_clears_every_balance():
    net = {1: Decimal("50"), 2: Decimal("-10"), 3: Decimal("-40"), 4: Decimal("0")}

    transfers = simplify_debts(net)

    for f, t, amount in transfers:
        net[f] += amount
        net[t] -= amount
    assert all(v == 0 for v in net.values())
    assert len(transfers) == 2


def test_simplify_debts_nothing_to_do():
    assert simplify_debts({1: Decimal("0"), 2: Decimal("0")}) == []


def test_money_helpers():
    assert minimal_unit() == Decimal("0.01")
    assert minimal_unit(3) == Decimal("0.001")
    assert qround(Decimal("2.345")) == Decimal("2.35")
    assert to_money(1.1) == Decimal("1.1")
    assert to_money("3.50") == Decimal("3.50")
