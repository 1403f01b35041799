import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Set

from eth_typing import ChecksumAddress
from eth_utils import is_hex_address, to_checksum_address
from web3 import Web3

from groupfund_deployment.constants import ZERO_ADDRESS
from groupfund_deployment.exceptions import PlanError
from groupfund_deployment.registry import DeployedRegistry


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        constants: typing.Dict[str, Any] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.constants = constants or dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, registry: DeployedRegistry) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, registry: DeployedRegistry) -> Any:
        if registry.deployer is None:
            return ZERO_ADDRESS
        return registry.deployer

    def __repr__(self):
        return f"${self.DEPLOYER_INDICATOR}"


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise PlanError(
                f"Constant '{constant_name}' used by {context.contract_name} "
                "not found in deployment file."
            )
        self.constant_name = constant_name
        if isinstance(self.constant_value, str) and is_hex_address(self.constant_value):
            self.constant_value = to_checksum_address(self.constant_value)

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, registry: DeployedRegistry) -> Any:
        return self.constant_value

    def __repr__(self):
        return f"${self.constant_name}"


class FixedPoint(Variable):
    """A decimal amount of whole units, scaled to an 18 decimals integer."""

    FIXED_PREFIX = "fixed:"

    def __init__(self, variable: str, context: VariableContext):
        self.amount = variable[len(self.FIXED_PREFIX) :]
        try:
            self.value = Web3.to_wei(Decimal(self.amount), "ether")
        except (InvalidOperation, ValueError):
            raise PlanError(
                f"Invalid fixed-point amount '{self.amount}' for {context.contract_name}."
            )

    @classmethod
    def is_fixed_point(cls, value: str) -> bool:
        return value.startswith(cls.FIXED_PREFIX)

    def resolve(self, registry: DeployedRegistry) -> Any:
        return self.value

    def __repr__(self):
        return f"${self.FIXED_PREFIX}{self.amount}"


class ContractName(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise PlanError(
                f"{context.contract_name} references undeclared contract '{contract_name}'."
            )
        self.contract_name = contract_name

    def resolve(self, registry: DeployedRegistry) -> Any:
        """Resolves a contract address; the contract must already be deployed."""
        return registry.address_of(self.contract_name)

    def __repr__(self):
        return f"${self.contract_name}"


def address_of(contract_name: str) -> ContractName:
    """A reference to the address of a contract of the plan, for plans built in code."""
    context = VariableContext(contract_names=[contract_name], contract_name=contract_name)
    return ContractName(contract_name, context)


def _resolve_param(value: Any, registry: DeployedRegistry) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, registry) for v in value]

    if isinstance(value, Variable):
        return value.resolve(registry)

    return value  # literally a value


def resolve_params(parameters: OrderedDict, registry: DeployedRegistry) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value, registry)

    return resolved_parameters


def resolve_args(args: List[Any], registry: DeployedRegistry) -> List[Any]:
    return [_resolve_param(arg, registry) for arg in args]


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif FixedPoint.is_fixed_point(variable):
        return FixedPoint(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)
    elif isinstance(value, str) and is_hex_address(value):
        value = to_checksum_address(value)

    return value


def process_raw_values(values: typing.Dict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = process_raw_value(value, variable_context)

    return processed_parameters


def referenced_contracts(value: Any) -> Set[str]:
    """Returns the names of all contracts whose address a (processed) value refers to."""
    if isinstance(value, list):
        names = set()
        for v in value:
            names |= referenced_contracts(v)
        return names
    if isinstance(value, ContractName):
        return {value.contract_name}
    return set()


class PlaceholderRegistry(DeployedRegistry):
    """
    A registry that answers the zero address for contracts not deployed yet.
    Used to eagerly validate parameters before anything is deployed.
    """

    def address_of(self, name: str) -> ChecksumAddress:
        if name in self:
            return super().address_of(name)
        return ZERO_ADDRESS


def eager_registry(registry: Optional[DeployedRegistry] = None) -> PlaceholderRegistry:
    if registry is None:
        registry = DeployedRegistry()
    return PlaceholderRegistry(
        chain_id=registry.chain_id, deployer=registry.deployer, addresses=registry.as_dict()
    )
