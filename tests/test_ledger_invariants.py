from __future__ import annotations

import random
import threading

from stakepool.ledger.constants import COIN
from stakepool.ledger.errors import LedgerError
from stakepool.ledger.rate_model import RateModel
from stakepool.ledger.stake_ledger import StakeLedger

LOCK = 3_600


def _sum_principal(led: StakeLedger) -> int:
    total = 0
    for pid in led.principals():
        rec = led.get_record(pid)
        assert rec is not None
        total += rec.principal
    return total


def test_total_locked_always_equals_sum_of_records() -> None:
    """Random walk over deposits, withdrawals and emergency exits."""
    rng = random.Random(1337)
    led = StakeLedger(rate_model=RateModel(), minimum_lock_duration=LOCK, emergency_penalty_percent=10)
    principals = [f"p{i}" for i in range(6)]
    now = 1_700_000_000
    rejected = 0

    for _ in range(600):
        now += rng.randint(0, LOCK // 2)
        pid = rng.choice(principals)
        op = rng.random()
        try:
            if op < 0.5:
                led.deposit(pid, rng.randint(0, 5_000) * COIN, now)
            elif op < 0.85:
                rec = led.get_record(pid)
                held = rec.principal if rec is not None else 0
                led.withdraw(pid, rng.randint(0, max(held, 1)), now)
            else:
                led.emergency_withdraw(pid, now)
        except LedgerError:
            rejected += 1

        assert led.total_locked() == _sum_principal(led)
        led.verify_totals()
        assert led.current_rate() == led.rate_model.rate(led.total_locked())

        for p in principals:
            assert led.pending_yield(p, now) >= 0

    # Sanity: the walk exercised both paths.
    assert 0 < rejected < 600


def test_carry_never_decreases_except_on_payout() -> None:
    led = StakeLedger(rate_model=RateModel(), minimum_lock_duration=0, emergency_penalty_percent=10)
    now = 0
    led.deposit("alice", 1_000 * COIN, now)
    last = 0
    for _ in range(20):
        now += 86_400
        led.deposit("alice", COIN, now)
        carry = led.get_record("alice").accrued_carry  # type: ignore[union-attr]
        assert carry > last
        last = carry

    rcpt = led.withdraw("alice", COIN, now + 1)
    assert rcpt.yield_paid >= last
    assert led.get_record("alice").accrued_carry == 0  # type: ignore[union-attr]


def test_concurrent_mutations_keep_totals_and_rate_consistent() -> None:
    led = StakeLedger(rate_model=RateModel(), minimum_lock_duration=0, emergency_penalty_percent=10)
    workers = 8
    rounds = 250
    start = threading.Barrier(workers)
    net = [0] * workers
    errors: list = []

    def _worker(idx: int) -> None:
        rng = random.Random(idx)
        own = f"t{idx}"
        now = 1_700_000_000
        start.wait()
        try:
            for _ in range(rounds):
                now += rng.randint(1, 600)
                pid = own if rng.random() < 0.6 else "shared"
                op = rng.random()
                try:
                    if op < 0.55:
                        rcpt = led.deposit(pid, rng.randint(1, 50) * COIN, now)
                        net[idx] += rcpt.amount
                    elif op < 0.9:
                        rcpt = led.withdraw(pid, rng.randint(1, 20) * COIN, now)
                        net[idx] -= rcpt.amount
                    else:
                        rcpt = led.emergency_withdraw(pid, now)
                        net[idx] -= rcpt.amount
                except LedgerError:
                    pass
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=_worker, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    led.verify_totals()
    assert led.total_locked() == sum(net) == _sum_principal(led)
    assert led.current_rate() == led.rate_model.rate(led.total_locked())
