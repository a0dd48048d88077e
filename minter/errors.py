"""
Exception types raised by the NFT deployment pipeline
"""


class DeploymentError(Exception):
    """Base class for all deployment failures"""


class ConfigurationError(DeploymentError):
    """Required configuration is missing or invalid"""


class ValidationError(DeploymentError):
    """Metadata is missing required fields or cannot be read"""

    def __init__(self, message: str, missing_fields=None, invalid_fields=None):
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])
        self.invalid_fields = list(invalid_fields or [])


class InsufficientFundsError(DeploymentError):
    """Payer balance is below the minimum needed to mint"""

    def __init__(self, balance_sol: float, required_sol: float):
        super().__init__(
            f"Insufficient balance. Need at least {required_sol} SOL, have {balance_sol} SOL"
        )
        self.balance_sol = balance_sol
        self.required_sol = required_sol


class NetworkUnavailableError(DeploymentError):
    """RPC endpoint did not answer a liveness probe"""


class PublishFailure(DeploymentError):
    """Pinning service upload failed (recovered with a data URI fallback)"""


class TransactionBuildError(DeploymentError):
    """Mint transaction could not be composed or signed"""


class SubmissionError(DeploymentError):
    """Transaction was rejected or could not be sent"""


class ConfirmationTimeoutError(DeploymentError):
    """Transaction did not reach a confirmed state within the retry budget"""

    def __init__(self, signature: str, attempts: int):
        super().__init__(
            f"Transaction confirmation timeout after {attempts} attempts: {signature}"
        )
        self.signature = signature
        self.attempts = attempts


class OnChainExecutionError(DeploymentError):
    """Transaction landed but the chain reported an execution error"""

    def __init__(self, signature: str, reason: str):
        super().__init__(f"Transaction failed: {reason}")
        self.signature = signature
        self.reason = reason
