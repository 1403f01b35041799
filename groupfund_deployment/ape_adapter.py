import os
import typing
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

from ape import Contract, networks, project
from ape.api import AccountAPI, ReceiptAPI
from ape.contracts.base import ContractContainer, ContractInstance
from ape.exceptions import ApeException
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from web3 import Web3

from groupfund_deployment.chain import ChainClient
from groupfund_deployment.constants import LOCAL_NETWORK_NAMES
from groupfund_deployment.exceptions import PlanError, TxError
from groupfund_deployment.params import eager_registry, resolve_params
from groupfund_deployment.plan import DeploymentPlan
from groupfund_deployment.registry import DeployedRegistry

_w3 = Web3()


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORK_NAMES


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar)
    if not api_key:
        raise ValueError(f"{explorer_envvar} is not set.")


def check_infura_plugin() -> None:
    """Checks that the ape-infura plugin is installed."""
    if is_local_network():
        return  # unnecessary for local deployment
    if networks.provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to use this script.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )


def check_plugins() -> None:
    print("Checking plugins...")
    check_etherscan_plugin()
    check_infura_plugin()


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[Any],
    resolved_parameters: OrderedDict,
) -> None:
    """Validates the constructor parameters against the constructor ABI."""
    if len(resolved_parameters) != len(abi_inputs):
        raise PlanError(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )
    if not abi_inputs:
        return  # no constructor parameters

    codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
    for position, (abi_input, resolved_input) in codex:
        name, value = resolved_input
        if abi_input.name != name:
            raise PlanError(
                f"{contract_name} constructor parameter '{name}' at position {position} does not "
                f"match the expected ABI name '{abi_input.name}'."
            )

        if not _w3.is_encodable(abi_input.type, value):
            raise PlanError(
                f"Constructor param name '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}'"
            )


def validate_constructor_parameters(
    plan: DeploymentPlan, registry: Optional[DeployedRegistry] = None
) -> None:
    """
    Checks every constructor of the plan against the compiled contract ABIs
    before anything is deployed. Contracts that are not deployed yet stand in
    as the zero address.
    """
    print("Validating constructor parameters against contract ABIs...")
    placeholders = eager_registry(registry)
    for spec in plan.deploy_sequence:
        contract_container = get_contract_container(spec.contract_type)
        _validate_constructor_abi_inputs(
            contract_name=spec.name,
            abi_inputs=contract_container.constructor.abi.inputs,
            resolved_parameters=resolve_params(spec.constructor, placeholders),
        )


def verify_contracts(addresses: Dict[str, ChecksumAddress]) -> None:
    explorer = networks.provider.network.explorer
    for name, address in addresses.items():
        print(f"(i) Verifying {name}...")
        explorer.publish_contract(address)


class ApeChainClient(ChainClient):
    """
    Chain access through an ape account on the connected network.

    Contract instances are bound from the ape project's compiled contract types.
    Addresses of contracts that were not deployed through this client can be bound
    with `bind`; otherwise ape looks the contract type up by address.
    """

    def __init__(
        self,
        account: AccountAPI,
        autosign: bool = False,
        publish: bool = False,
    ):
        self._account = account
        self._publish = publish
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
            if hasattr(self._account, "set_autosign"):
                self._account.set_autosign(True)
        self._contract_types: Dict[ChecksumAddress, str] = dict()

    @property
    def chain_id(self) -> int:
        return networks.provider.network.chain_id

    @property
    def deployer_address(self) -> ChecksumAddress:
        return self._account.address

    @property
    def is_local(self) -> bool:
        return is_local_network()

    def get_account(self) -> AccountAPI:
        return self._account

    def bind(self, address: str, contract_type: str) -> ChecksumAddress:
        """Records the contract type deployed at an address."""
        address = to_checksum_address(address)
        self._contract_types[address] = contract_type
        return address

    def bind_registry(self, registry: DeployedRegistry, contract_types: typing.Dict[str, str]):
        for name, address in registry.as_dict().items():
            self.bind(address, contract_types.get(name, name))

    def _instance(self, address: ChecksumAddress) -> ContractInstance:
        address = to_checksum_address(address)
        contract_type = self._contract_types.get(address)
        if contract_type is None:
            return Contract(address)
        return get_contract_container(contract_type).at(address)

    def deploy_contract(self, contract_type: str, args: Sequence[Any]) -> ChecksumAddress:
        container = get_contract_container(contract_type)
        try:
            instance = self._account.deploy(container, *args, publish=self._publish)
        except ApeException as e:
            raise TxError(f"Deployment of {contract_type} failed: {e}") from e
        return self.bind(instance.address, contract_type)

    def call(self, address: ChecksumAddress, method: str, args: Sequence[Any]) -> Any:
        handler = getattr(self._instance(address), method)
        try:
            return handler(*args)
        except ApeException as e:
            raise TxError(f"Call to {method} at {address} failed: {e}") from e

    def send_transaction(
        self, address: ChecksumAddress, method: str, args: Sequence[Any]
    ) -> ReceiptAPI:
        handler = getattr(self._instance(address), method)
        try:
            receipt = handler(*args, sender=self._account)
        except ApeException as e:
            raise TxError(f"Transaction {method} to {address} failed: {e}") from e
        if receipt.failed:
            raise TxError(f"Transaction {method} to {address} reverted ({receipt.txn_hash})")
        return receipt
