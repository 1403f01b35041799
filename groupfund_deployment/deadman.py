from typing import List, Optional, Sequence, Tuple

from eth_typing import ChecksumAddress
from web3 import Web3

from groupfund_deployment.batch import (
    Action,
    BatchResult,
    BatchRunner,
    BatchSummary,
    Precondition,
    summarize,
)
from groupfund_deployment.chain import ChainClient
from groupfund_deployment.constants import DEADMAN_THRESHOLD

BALANCE_OF = "balanceOf"
BURN_DEADMAN = "burnDeadman"


def token_balance(client: ChainClient, token_address: ChecksumAddress) -> Precondition:
    """Reads the control token balance of an account, in base units."""

    def precondition(account: str) -> int:
        balance = client.call(token_address, BALANCE_OF, [account])
        print(f"ControlToken balance: {Web3.from_wei(balance, 'ether')}")
        return balance

    return precondition


def burn_deadman(client: ChainClient, fund_address: ChecksumAddress) -> Action:
    """Burns the stake of an inactive account on the fund."""

    def action(account: str):
        return client.send_transaction(fund_address, BURN_DEADMAN, [account])

    return action


def burn_deadmen(
    client: ChainClient,
    fund_address: ChecksumAddress,
    token_address: ChecksumAddress,
    accounts: Sequence[str],
    threshold: Optional[int] = None,
    runner: Optional[BatchRunner] = None,
) -> Tuple[List[BatchResult], BatchSummary]:
    """
    Burns every listed account holding at least `threshold` control tokens
    (one whole token by default). A custom `runner` carries its own threshold.

    Safe to run again over the same list: accounts already burned hold no tokens
    and are skipped.
    """
    if runner is None:
        runner = BatchRunner(threshold=DEADMAN_THRESHOLD if threshold is None else threshold)
    elif threshold is not None:
        raise ValueError("Pass either a threshold or a runner, not both.")
    results = runner.run(
        items=accounts,
        precondition=token_balance(client, token_address),
        action=burn_deadman(client, fund_address),
    )
    return results, summarize(results)


def print_summary(summary: BatchSummary, total: int) -> None:
    print(
        f"\nProcessed {summary.total}/{total} accounts: "
        f"{summary.applied} burned, {summary.skipped} skipped, {summary.failed} failed"
    )
