from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from eth_typing import ChecksumAddress


class ChainClient(ABC):
    """
    The narrow view of a blockchain used by deployments and batch jobs.

    Every method blocks until the network has answered: deployments and transactions
    return only once they are confirmed, and raise `TxError` if they revert or are
    not confirmed.
    """

    @property
    @abstractmethod
    def chain_id(self) -> int:
        raise NotImplementedError

    @property
    @abstractmethod
    def deployer_address(self) -> Optional[ChecksumAddress]:
        """Address of the account that signs deployments and transactions."""
        raise NotImplementedError

    @property
    def is_local(self) -> bool:
        """True when connected to a throwaway development chain."""
        return False

    @abstractmethod
    def deploy_contract(self, contract_type: str, args: Sequence[Any]) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def call(self, address: ChecksumAddress, method: str, args: Sequence[Any]) -> Any:
        raise NotImplementedError

    @abstractmethod
    def send_transaction(self, address: ChecksumAddress, method: str, args: Sequence[Any]) -> Any:
        raise NotImplementedError
