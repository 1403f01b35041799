import pytest

from groupfund_deployment.batch import BatchRunner, BatchSummary, Outcome
from groupfund_deployment.deadman import BALANCE_OF, BURN_DEADMAN, burn_deadmen
from tests.conftest import ACCOUNT_A, ACCOUNT_B, ACCOUNT_C, CALL, ONE_UNIT, SEND

FUND = "0x" + "f0" * 20
TOKEN = "0x" + "70" * 20


def test_burn_deadmen(client):
    client.balances.update(
        {ACCOUNT_A: ONE_UNIT // 2, ACCOUNT_B: 2 * ONE_UNIT, ACCOUNT_C: 5 * ONE_UNIT}
    )
    client.failing_transactions.add((BURN_DEADMAN, ACCOUNT_B))

    results, summary = burn_deadmen(
        client,
        fund_address=FUND,
        token_address=TOKEN,
        accounts=[ACCOUNT_A, ACCOUNT_B, ACCOUNT_C],
    )

    assert [result.outcome for result in results] == [
        Outcome.SKIPPED,
        Outcome.FAILED,
        Outcome.APPLIED,
    ]
    assert summary == BatchSummary(applied=1, skipped=1, failed=1)
    assert client.calls_of(CALL) == [
        (CALL, TOKEN, BALANCE_OF, [ACCOUNT_A]),
        (CALL, TOKEN, BALANCE_OF, [ACCOUNT_B]),
        (CALL, TOKEN, BALANCE_OF, [ACCOUNT_C]),
    ]
    assert client.calls_of(SEND) == [
        (SEND, FUND, BURN_DEADMAN, [ACCOUNT_B]),
        (SEND, FUND, BURN_DEADMAN, [ACCOUNT_C]),
    ]


def test_burning_twice_is_idempotent(client):
    accounts = [ACCOUNT_A, ACCOUNT_B, ACCOUNT_A]
    client.balances.update({ACCOUNT_A: 3 * ONE_UNIT, ACCOUNT_B: ONE_UNIT})

    first, first_summary = burn_deadmen(client, FUND, TOKEN, accounts)
    second, second_summary = burn_deadmen(client, FUND, TOKEN, accounts)

    # the duplicate is skipped once its first occurrence has been burned
    assert first_summary == BatchSummary(applied=2, skipped=1, failed=0)
    assert [result.outcome for result in second] == [Outcome.SKIPPED] * 3
    assert second_summary == BatchSummary(applied=0, skipped=3, failed=0)
    assert len(client.calls_of(SEND)) == 2


def test_empty_list_touches_nothing(client):
    results, summary = burn_deadmen(client, FUND, TOKEN, accounts=[])

    assert results == []
    assert summary == BatchSummary(0, 0, 0)
    assert client.calls == []


def test_custom_threshold(client):
    client.balances.update({ACCOUNT_A: ONE_UNIT})
    runner = BatchRunner(threshold=10 * ONE_UNIT, progress=None)

    results, summary = burn_deadmen(client, FUND, TOKEN, [ACCOUNT_A], runner=runner)

    assert summary == BatchSummary(applied=0, skipped=1, failed=0)
    assert client.calls_of(SEND) == []


def test_threshold_argument(client):
    client.balances.update({ACCOUNT_A: 2 * ONE_UNIT, ACCOUNT_B: 5 * ONE_UNIT})

    results, summary = burn_deadmen(
        client, FUND, TOKEN, [ACCOUNT_A, ACCOUNT_B], threshold=3 * ONE_UNIT
    )

    assert summary == BatchSummary(applied=1, skipped=1, failed=0)
    assert client.calls_of(SEND) == [(SEND, FUND, BURN_DEADMAN, [ACCOUNT_B])]


def test_threshold_and_runner_are_exclusive(client):
    runner = BatchRunner(threshold=10 * ONE_UNIT, progress=None)

    with pytest.raises(ValueError, match="not both"):
        burn_deadmen(client, FUND, TOKEN, [ACCOUNT_A], threshold=ONE_UNIT, runner=runner)
    assert client.calls == []
