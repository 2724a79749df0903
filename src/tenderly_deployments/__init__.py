"""
tenderly-deployments: deploy smart contracts and verify them on Tenderly
"""

from importlib.metadata import PackageNotFoundError, version

from .dispatcher import Dispatcher
from .exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    CyclicLinkError,
    DeploymentError,
    DuplicateDeploymentError,
    InvalidForkError,
    SourceReadError,
    TenderlyDeploymentsError,
    TransportError,
    UnresolvedLinkError,
    VerificationError,
)
from .manifest import ManifestBuilder
from .orchestrator import DeploymentOrchestrator, RunRegistry
from .pipeline import PipelineResult, run_pipeline, verify_deployed
from .types import (
    CompilerSettings,
    ContractArtifact,
    DeployedInstance,
    Fork,
    LiveNetwork,
    ManifestMode,
    Optimization,
    VerificationManifest,
    VerificationResult,
)

try:
    __version__ = version("tenderly-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentOrchestrator",
    "RunRegistry",
    "ManifestBuilder",
    "Dispatcher",
    "run_pipeline",
    "verify_deployed",
    "PipelineResult",
    "CompilerSettings",
    "ContractArtifact",
    "DeployedInstance",
    "Fork",
    "LiveNetwork",
    "ManifestMode",
    "Optimization",
    "VerificationManifest",
    "VerificationResult",
    "TenderlyDeploymentsError",
    "DeploymentError",
    "DuplicateDeploymentError",
    "UnresolvedLinkError",
    "CyclicLinkError",
    "InvalidForkError",
    "SourceReadError",
    "ArtifactNotFoundError",
    "ConfigurationError",
    "TransportError",
    "VerificationError",
]
