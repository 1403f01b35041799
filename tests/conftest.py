from typing import Any, Optional, Sequence

import pytest
from eth_utils import to_checksum_address

from groupfund_deployment.chain import ChainClient
from groupfund_deployment.exceptions import TxError

ONE_UNIT = 10**18

DEPLOYER = to_checksum_address("0x" + "de" * 20)
ACCOUNT_A = to_checksum_address("0x" + "0a" * 20)
ACCOUNT_B = to_checksum_address("0x" + "0b" * 20)
ACCOUNT_C = to_checksum_address("0x" + "0c" * 20)

DEPLOY = "deploy"
CALL = "call"
SEND = "send"


class FakeChainClient(ChainClient):
    """Records every chain interaction; deployments get sequential addresses."""

    def __init__(self, chain_id: int = 1337, deployer: Optional[str] = DEPLOYER):
        self._chain_id = chain_id
        self._deployer = deployer
        self.calls = list()
        self.deployed = dict()
        self.balances = dict()
        self.failing_deployments = set()
        self.failing_transactions = set()
        self.failing_calls = set()

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def deployer_address(self):
        return self._deployer

    @property
    def is_local(self) -> bool:
        return True

    def deploy_contract(self, contract_type: str, args: Sequence[Any]):
        self.calls.append((DEPLOY, contract_type, list(args)))
        if contract_type in self.failing_deployments:
            raise TxError(f"{contract_type} deployment reverted")
        address = to_checksum_address(f"0x{len(self.deployed) + 1:040x}")
        self.deployed[address] = contract_type
        return address

    def call(self, address, method: str, args: Sequence[Any]) -> Any:
        self.calls.append((CALL, address, method, list(args)))
        if (method, args[0]) in self.failing_calls:
            raise TxError(f"{method} call failed")
        if method == "balanceOf":
            return self.balances.get(args[0], 0)
        raise AssertionError(f"unexpected call {method}")

    def send_transaction(self, address, method: str, args: Sequence[Any]) -> Any:
        self.calls.append((SEND, address, method, list(args)))
        first_arg = args[0] if args else None
        if (
            method in self.failing_transactions
            or (method, first_arg) in self.failing_transactions
            or (address, method) in self.failing_transactions
        ):
            raise TxError(f"{method} reverted")
        if method == "burnDeadman":
            self.balances[first_arg] = 0
        return {"status": 1, "method": method}

    def calls_of(self, kind: str):
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def groupfund_config():
    return {
        "deployment": {"name": "groupfund-test", "chain_id": 1337},
        "artifacts": {"filename": "test.json"},
        "constants": {"ETHER_DELTA": "0x4e10d1807608994489355d873edb6dc09b151776"},
        "contracts": [
            "ControlToken",
            {
                "OraclizeHandler": {
                    "constructor": {"_etherDeltaAddr": "$ETHER_DELTA"},
                }
            },
            {
                "GroupFund": {
                    "constructor": {
                        "_controlToken": "$ControlToken",
                        "_oraclizeHandler": "$OraclizeHandler",
                        "_developerFeeAccount": "$deployer",
                        "_commissionRate": "$fixed:0.01",
                        "_maxProposals": 20,
                    }
                }
            },
        ],
        "wiring": [
            {"transfer_ownership": {"contract": "ControlToken", "new_owner": "$GroupFund"}},
            {"transfer_ownership": {"contract": "OraclizeHandler", "new_owner": "$GroupFund"}},
            {
                "invoke": {
                    "contract": "GroupFund",
                    "method": "initializeSubcontracts",
                    "args": ["$ControlToken", "$OraclizeHandler"],
                }
            },
        ],
    }
