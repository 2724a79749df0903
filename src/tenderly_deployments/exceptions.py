"""Custom exception classes for tenderly-deployments library."""

from typing import Any, Optional


class TenderlyDeploymentsError(Exception):
    """Base exception for all library errors."""

    pass


class DeploymentError(TenderlyDeploymentsError, RuntimeError):
    """Raised when the chain client rejects or fails a contract-creation transaction."""

    pass


class DuplicateDeploymentError(TenderlyDeploymentsError, ValueError):
    """Raised when an artifact is recorded twice under the same network key."""

    pass


class UnresolvedLinkError(TenderlyDeploymentsError, ValueError):
    """Raised when a library link has no known address."""

    pass


class CyclicLinkError(TenderlyDeploymentsError, ValueError):
    """Raised when the library dependency graph contains a cycle."""

    pass


class InvalidForkError(TenderlyDeploymentsError, ValueError):
    """Raised when a fork-scoped operation has no usable fork identifier."""

    pass


class SourceReadError(TenderlyDeploymentsError, OSError):
    """Raised when a contract source file cannot be read."""

    pass


class ArtifactNotFoundError(TenderlyDeploymentsError, FileNotFoundError):
    """Raised when a compiled Hardhat artifact is not found."""

    pass


class ConfigurationError(TenderlyDeploymentsError, ValueError):
    """Raised when required settings are missing or invalid."""

    pass


class TransportError(TenderlyDeploymentsError, RuntimeError):
    """Raised by the HTTP transport when the verification service call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VerificationError(TenderlyDeploymentsError):
    """
    Verification failure reported by the dispatcher.

    Returned inside a VerificationResult rather than raised, since the
    deployment it refers to is already on-chain.
    """

    def __init__(self, mode: Any, cause: BaseException):
        super().__init__(f"{getattr(mode, 'value', mode)} verification failed: {cause}")
        self.mode = mode
        self.cause = cause
