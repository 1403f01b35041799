class GroupFundDeploymentError(Exception):
    """Base exception for deployment and maintenance errors."""


class PlanError(GroupFundDeploymentError, ValueError):
    """Raised when a deployment plan is malformed; no transaction has been sent."""


class TxError(GroupFundDeploymentError):
    """Raised by a chain client when a transaction reverts or is not confirmed."""


class NotDeployed(GroupFundDeploymentError, KeyError):
    """Raised when a contract has no address in the deployed registry (yet)."""

    def __init__(self, contract_name: str):
        super().__init__(contract_name)
        self.contract_name = contract_name

    def __str__(self):
        return f"{self.contract_name} has not been deployed"


class Cancelled(GroupFundDeploymentError):
    """Raised when a run is cancelled at a step boundary."""


class DeployError(GroupFundDeploymentError):
    """Raised when a contract could not be deployed; halts the run."""

    def __init__(self, contract_name: str, cause: Exception):
        super().__init__(f"Deployment of {contract_name} failed: {cause}")
        self.contract_name = contract_name
        self.cause = cause


class WireError(GroupFundDeploymentError):
    """Raised when a wiring step fails; remaining wiring steps are not attempted."""

    def __init__(self, index: int, step, cause: Exception):
        super().__init__(f"Wiring step #{index} ({step}) failed: {cause}")
        self.index = index
        self.step = step
        self.cause = cause


class BatchItemError(GroupFundDeploymentError):
    """Records the failure of a single batch item."""

    def __init__(self, item: str, phase: str, cause: Exception):
        super().__init__(f"{phase} failed for {item}: {cause}")
        self.item = item
        self.phase = phase
        self.cause = cause
