from collections import OrderedDict

from groupfund_deployment.constants import ZERO_ADDRESS


def _answered_no(question: str) -> bool:
    answer = input(question)
    return answer.lower().strip() == "n"


def _confirm_deployment(contract_name: str) -> bool:
    """Asks the user to confirm the deployment of a single contract."""
    if _answered_no(f"Deploy {contract_name} Y/N? "):
        print("Aborting deployment!")
        return False
    return True


def _continue() -> bool:
    """Asks the user to continue."""
    if _answered_no("Continue Y/N? "):
        print("Aborting deployment!")
        return False
    return True


def _confirm_zero_address() -> bool:
    if _answered_no("Zero Address detected for deployment parameter; Continue? Y/N? "):
        print("Aborting deployment!")
        return False
    return True


def _confirm_resolution(resolved_params: OrderedDict, contract_name: str) -> bool:
    """Asks the user to confirm the resolved constructor parameters for a single contract."""
    if len(resolved_params) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
        return _confirm_deployment(contract_name)

    print(f"\nConstructor parameters for {contract_name}")
    contains_zero_address = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = resolved_value == ZERO_ADDRESS
    if not _confirm_deployment(contract_name):
        return False
    if contains_zero_address:
        return _confirm_zero_address()
    return True
