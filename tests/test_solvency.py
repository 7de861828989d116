from __future__ import annotations

import pytest

from stakepool.ledger.errors import SolvencyViolation
from stakepool.ledger.solvency import is_solvent, solvency_margin, surplus_yield


def test_surplus_is_held_minus_locked() -> None:
    assert surplus_yield(1_500, 1_000) == 500
    assert surplus_yield(1_000, 1_000) == 0


def test_shortfall_raises_instead_of_wrapping() -> None:
    with pytest.raises(SolvencyViolation) as ei:
        surplus_yield(999, 1_000)
    assert ei.value.code == "solvency_violation"
    assert ei.value.details["shortfall"] == 1


def test_margin_is_signed_and_never_raises() -> None:
    assert solvency_margin(10, 25) == -15
    assert not is_solvent(10, 25)
    assert is_solvent(25, 25)
