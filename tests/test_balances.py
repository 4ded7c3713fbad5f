from decimal import Decimal

import pytest

from gastito.services.balances import InvalidInput, Member, compute_balances, make_expense

A = Member(id=1, label="Ana")
B = Member(id=2, label="Beto")
C = Member(id=3, label="Carla")


def test_single_payer_balances():
    sheet = compute_balances([A, B, C], [make_expense(90, payer_id=1)])

    assert sheet.total == Decimal("90")
    assert sheet.equal_share == Decimal("30")
    assert sheet.as_mapping() == {1: Decimal("60"), 2: Decimal("-30"), 3: Decimal("-30")}


def test_no_expenses_gives_zero_balances():
    sheet = compute_balances([A, B], [])

    assert sheet.total == 0
    assert all(entry.balance == 0 for entry in sheet.balances)


def test_member_without_expenses_is_pure_debtor():
    expenses = [make_expense("40.50", payer_id=1), make_expense(19.5, payer_id=2)]
    sheet = compute_balances([A, B, C], expenses)

    carla = sheet.balances[2]
    assert carla.total_paid == 0
    assert carla.expense_count == 0
    assert carla.average_expense == 0
    assert carla.balance == -sheet.equal_share


def test_balances_sum_to_zero_with_uneven_split():
    expenses = [
        make_expense(100, payer_id=1),
        make_expense("0.10", payer_id=2),
        make_expense(33.33, payer_id=3),
        make_expense(7, payer_id=2),
    ]
    sheet = compute_balances([A, B, C], expenses)

    assert abs(sum(entry.balance for entry in sheet.balances)) <= Decimal("1e-6")


def test_member_statistics():
    expenses = [make_expense(10, payer_id=2), make_expense(30, payer_id=2)]
    sheet = compute_balances([A, B], expenses)

    beto = sheet.balances[1]
    assert beto.total_paid == Decimal("40")
    assert beto.expense_count == 2
    assert beto.average_expense == Decimal("20")


def test_empty_members_rejected():
    with pytest.raises(InvalidInput):
        compute_balances([], [])


def test_unknown_payer_rejected():
    with pytest.raises(InvalidInput):
        compute_balances([A, B], [make_expense(10, payer_id=99)])


def test_duplicate_member_rejected():
    with pytest.raises(InvalidInput):
        compute_balances([A, Member(id=1, label="Ana otra vez")], [])


def test_negative_amount_rejected():
    with pytest.raises(InvalidInput):
        compute_balances([A], [make_expense(-5, payer_id=1)])
