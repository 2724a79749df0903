"""Verification request routing for tenderly-deployments library."""

import logging
from typing import Any, Dict, Optional, Protocol

from .exceptions import ConfigurationError, VerificationError
from .types import ManifestMode, VerificationManifest, VerificationResult

logger = logging.getLogger(__name__)


class VerificationTransport(Protocol):
    """Network access to the verification service."""

    def verify_simple(self, request: Dict[str, Any]) -> Any:
        ...

    def verify_bundle(self, request: Dict[str, Any]) -> Any:
        ...

    def verify_fork_bundle(
        self, request: Dict[str, Any], fork_id: str, project: str, account: str
    ) -> Any:
        ...


class Dispatcher:
    """Sends manifests to the matching transport operation."""

    def __init__(
        self,
        transport: VerificationTransport,
        project: Optional[str] = None,
        account: Optional[str] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            transport: Verification service client
            project: Default project slug for fork bundles
            account: Default account (username) for fork bundles
        """
        self.transport = transport
        self.project = project
        self.account = account

    def dispatch(self, manifest: VerificationManifest) -> VerificationResult:
        """
        Submit a manifest for verification.

        Failures are returned in the result, never raised: the contracts are
        already deployed, and the same manifest can be resubmitted later.
        No retries are made here.

        Args:
            manifest: Manifest built by ManifestBuilder

        Returns:
            VerificationResult with the service response or a VerificationError

        Raises:
            Errors serialising a malformed manifest (nothing is sent then)
        """
        mode = manifest.mode
        names = ", ".join(manifest.contract_names)
        request = manifest.to_payload()
        try:
            response = self._send(manifest, request)
        except Exception as e:
            error = VerificationError(mode, e)
            logger.error("Verification of %s failed (%s): %s", names, mode.value, e)
            return VerificationResult(mode=mode, error=error)

        logger.info("Verification of %s submitted (%s)", names, mode.value)
        return VerificationResult(mode=mode, response=response)

    def _send(self, manifest: VerificationManifest, request: Dict[str, Any]) -> Any:
        match manifest.mode:
            case ManifestMode.SIMPLE:
                return self.transport.verify_simple(request)
            case ManifestMode.BUNDLE:
                return self.transport.verify_bundle(request)
            case ManifestMode.FORK_BUNDLE:
                project = manifest.project or self.project
                account = manifest.account or self.account
                if not project or not account:
                    raise ConfigurationError(
                        "Fork verification requires a project and an account"
                    )
                return self.transport.verify_fork_bundle(
                    request, manifest.fork_id, project, account
                )
            case _:
                raise ValueError(f"Unknown manifest mode: {manifest.mode}")
