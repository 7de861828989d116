from __future__ import annotations

import pytest

from stakepool.ledger.constants import COIN
from stakepool.ledger.errors import NothingStaked
from stakepool.ledger.rate_model import RateModel
from stakepool.ledger.stake_ledger import StakeLedger, emergency_split

LOCK = 7 * 24 * 60 * 60
T0 = 1_700_000_000


def _mk_ledger(penalty: int = 10) -> StakeLedger:
    return StakeLedger(rate_model=RateModel(), minimum_lock_duration=LOCK, emergency_penalty_percent=penalty)


@pytest.mark.parametrize(
    "principal,percent,returned",
    [
        (1_000, 10, 900),
        (1_001, 10, 900),  # 900.9 truncates; pool keeps the remainder
        (1, 10, 0),
        (999, 0, 999),
        (999, 100, 0),
        (3, 33, 2),
    ],
)
def test_emergency_split_truncates_in_pool_favor(principal: int, percent: int, returned: int) -> None:
    back, penalty = emergency_split(principal, percent)
    assert back == returned
    assert back + penalty == principal
    assert back == (principal * (100 - percent)) // 100


def test_emergency_exit_bypasses_lock_and_forfeits_yield() -> None:
    led = _mk_ledger()
    led.deposit("alice", 100 * COIN, T0)
    led.deposit("bob", 50 * COIN, T0)
    led.deposit("alice", 1 * COIN, T0 + 3_600)  # builds some carry

    t = T0 + 7_200
    forfeited = led.pending_yield("alice", t)
    assert forfeited > 0

    rcpt = led.emergency_withdraw("alice", t)
    assert rcpt.applied == "EMERGENCY_WITHDRAW"
    assert rcpt.amount == 101 * COIN
    assert rcpt.payout == (101 * COIN * 90) // 100
    assert rcpt.penalty == 101 * COIN - rcpt.payout
    assert rcpt.forfeited_yield == forfeited
    assert rcpt.yield_paid == 0

    rec = led.get_record("alice")
    assert rec is not None
    assert rec.principal == 0
    assert rec.accrued_carry == 0
    assert led.pending_yield("alice", t + 10_000) == 0
    assert led.total_locked() == 50 * COIN


def test_emergency_exit_on_empty_record_fails() -> None:
    led = _mk_ledger()
    with pytest.raises(NothingStaked):
        led.emergency_withdraw("ghost", T0)

    led.deposit("alice", 10, T0)
    led.emergency_withdraw("alice", T0)
    with pytest.raises(NothingStaked):
        led.emergency_withdraw("alice", T0 + 1)


def test_quote_matches_executed_exit() -> None:
    led = _mk_ledger(penalty=25)
    led.deposit("alice", 1_003, T0)
    q = led.quote_emergency_exit("alice", T0 + 50)
    rcpt = led.emergency_withdraw("alice", T0 + 50)
    assert q["return_amount"] == rcpt.payout == 752
    assert q["penalty"] == rcpt.penalty == 251
    assert q["penalty_percent"] == 25
