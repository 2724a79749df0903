"""Deploy-then-verify runs for tenderly-deployments library."""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .dispatcher import Dispatcher
from .exceptions import InvalidForkError, TenderlyDeploymentsError, VerificationError
from .manifest import ManifestBuilder
from .orchestrator import DeploymentOrchestrator
from .types import (
    ContractArtifact,
    DeployedInstance,
    ManifestMode,
    VerificationManifest,
    VerificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Deployments and verification outcomes of one run."""

    instances: List[DeployedInstance] = field(default_factory=list)
    results: List[VerificationResult] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        """True if every verification request succeeded."""
        return all(result.ok for result in self.results)

    def address_of(self, name: str) -> str:
        for instance in self.instances:
            if instance.name == name:
                return instance.address
        raise KeyError(name)


def build_manifests(
    builder: ManifestBuilder,
    instances: Sequence[DeployedInstance],
    mode: ManifestMode,
    references: Sequence[ContractArtifact] = (),
    external: Iterable[str] = (),
    fork_id: Optional[str] = None,
) -> List[VerificationManifest]:
    """
    Build the manifests a run submits for the given mode.

    SIMPLE yields one manifest per instance, in the given order; BUNDLE and
    FORK_BUNDLE yield a single manifest covering all instances.
    """
    match mode:
        case ManifestMode.SIMPLE:
            return [builder.build_simple(instance) for instance in instances]
        case ManifestMode.BUNDLE:
            return [builder.build_bundle(instances, references, external)]
        case ManifestMode.FORK_BUNDLE:
            return [builder.build_fork_bundle(instances, fork_id or "", references, external)]
        case _:
            raise ValueError(f"Unknown manifest mode: {mode}")


def verify_deployed(
    builder: ManifestBuilder,
    dispatcher: Dispatcher,
    instances: Sequence[DeployedInstance],
    mode: ManifestMode,
    references: Sequence[ContractArtifact] = (),
    external: Iterable[str] = (),
    fork_id: Optional[str] = None,
) -> List[VerificationResult]:
    """
    Verify contracts that are already on-chain.

    Manifest construction errors are raised; dispatch failures are returned
    in the results.
    """
    manifests = build_manifests(builder, instances, mode, references, external, fork_id)
    return [dispatcher.dispatch(manifest) for manifest in manifests]


def run_pipeline(
    orchestrator: DeploymentOrchestrator,
    builder: ManifestBuilder,
    dispatcher: Dispatcher,
    artifacts: Sequence[ContractArtifact],
    mode: ManifestMode,
    constructor_args: Optional[Mapping[str, Sequence[Any]]] = None,
    references: Sequence[ContractArtifact] = (),
    external: Iterable[str] = (),
    fork_id: Optional[str] = None,
) -> PipelineResult:
    """
    Deploy contracts in dependency order, then submit them for verification.

    The verification request is checked before anything is deployed (fork
    identifier, library entries, sources), so a run that cannot be verified
    fails without touching the chain. Any deployment error aborts the run
    before anything is verified. Failures after deployment, including a
    manifest that cannot be built, do not affect the deployments and are
    reported in the returned result.

    Args:
        orchestrator: Orchestrator bound to the target network
        builder: Manifest builder for this run
        dispatcher: Dispatcher bound to the verification transport
        artifacts: Contracts to deploy, in any order
        mode: Verification request variant
        constructor_args: Maps contract name -> constructor arguments
        references: Artifacts shipped with source but not deployed
        external: Library names accepted as already verified
        fork_id: Fork identifier (required for FORK_BUNDLE)

    Returns:
        PipelineResult with instances (deployment order) and verification results

    Raises:
        InvalidForkError: If mode is FORK_BUNDLE and fork_id is empty
        UnresolvedLinkError, CyclicLinkError, SourceReadError: From the
            pre-deployment check of the verification request
        DeploymentError: If a deployment fails
    """
    match mode:
        case ManifestMode.FORK_BUNDLE:
            if not isinstance(fork_id, str) or not fork_id.strip():
                raise InvalidForkError("Fork bundle requires a non-empty fork ID")
            builder.check_buildable(artifacts, references, external)
        case ManifestMode.BUNDLE:
            builder.check_buildable(artifacts, references, external)

    instances = orchestrator.deploy_all(artifacts, constructor_args)

    try:
        manifests = build_manifests(builder, instances, mode, references, external, fork_id)
    except TenderlyDeploymentsError as e:
        logger.error("Cannot build %s verification request for deployed contracts: %s", mode.value, e)
        results = [VerificationResult(mode=mode, error=VerificationError(mode, e))]
    else:
        results = [dispatcher.dispatch(manifest) for manifest in manifests]

    failed = [result for result in results if not result.ok]
    if failed:
        logger.warning("%d of %d verification requests failed", len(failed), len(results))

    return PipelineResult(instances=instances, results=results)
