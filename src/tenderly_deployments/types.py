"""Data types and dataclasses for tenderly-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .exceptions import InvalidForkError, VerificationError


@dataclass(frozen=True)
class Optimization:
    """Solidity optimizer settings."""

    enabled: bool
    runs: int = 200


@dataclass(frozen=True)
class CompilerSettings:
    """Compiler metadata attached to a contract artifact."""

    version: str  # e.g., "0.8.9"
    evm_version: Optional[str] = None  # e.g., "london" or "default"
    optimization: Optional[Optimization] = None

    def to_entry_payload(self) -> Dict[str, Any]:
        """Per-contract compiler block, camelCase keys."""
        payload: Dict[str, Any] = {"version": self.version}
        if self.evm_version is not None:
            payload["evmVersion"] = self.evm_version
        if self.optimization is not None:
            payload["optimizationsUsed"] = self.optimization.enabled
            payload["optimizationsCount"] = self.optimization.runs
        return payload

    def to_config_payload(self) -> Dict[str, Any]:
        """Request-wide compiler defaults, snake_case keys."""
        payload: Dict[str, Any] = {"compiler_version": self.version}
        if self.evm_version is not None:
            payload["evm_version"] = self.evm_version
        if self.optimization is not None:
            payload["optimizations_used"] = self.optimization.enabled
            payload["optimizations_count"] = self.optimization.runs
        return payload


@dataclass(eq=False)
class ContractArtifact:
    """
    A compiled contract known to the run.

    Artifacts compare by identity: the same artifact object is shared by every
    DeployedInstance that deploys it.
    """

    name: str  # Must match the on-chain contract name
    source_path: str  # Logical path shown to the verifier, e.g. "libraries/Maths.sol"
    compiler: CompilerSettings
    libraries: Tuple[str, ...] = ()  # Library names the bytecode links against
    source_file: Optional[str] = None  # Path handed to the source reader
    source_text: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.libraries = tuple(self.libraries)

    def load_source(self, read_source: Callable[[str], str]) -> str:
        """
        Return the artifact's source, reading it on first use.

        Args:
            read_source: Callable mapping a path to source text

        Returns:
            Source text (cached on the artifact after the first call)
        """
        if self.source_text is None:
            self.source_text = read_source(self.source_file or self.source_path)
        return self.source_text


@dataclass(frozen=True)
class LiveNetwork:
    """A live chain identified by its numeric chain ID."""

    chain_id: int

    def __post_init__(self) -> None:
        if isinstance(self.chain_id, bool) or not isinstance(self.chain_id, int):
            raise TypeError(f"chain_id must be an int, got {self.chain_id!r}")
        if self.chain_id <= 0:
            raise ValueError(f"chain_id must be positive, got {self.chain_id}")

    @property
    def key(self) -> str:
        return str(self.chain_id)


@dataclass(frozen=True)
class Fork:
    """An ephemeral fork identified by its (UUID-like) fork ID."""

    fork_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.fork_id, str) or not self.fork_id.strip():
            raise InvalidForkError("Fork ID must be a non-empty string")

    @property
    def key(self) -> str:
        return self.fork_id


NetworkTarget = Union[LiveNetwork, Fork]


@dataclass(frozen=True)
class DeployedInstance:
    """One on-chain deployment of an artifact."""

    artifact: ContractArtifact
    address: str
    target: NetworkTarget
    library_links: Mapping[str, str] = field(default_factory=dict)  # library name -> address

    def __post_init__(self) -> None:
        object.__setattr__(self, "library_links", dict(self.library_links))

    @property
    def name(self) -> str:
        return self.artifact.name

    @property
    def network_key(self) -> str:
        return self.target.key


class ManifestMode(Enum):
    """
    Verification request variants.

    Value strings are used on the command line and in log output.
    """

    SIMPLE = "simple"
    BUNDLE = "bundle"
    FORK_BUNDLE = "fork-bundle"


@dataclass(frozen=True)
class NetworkDeployment:
    """Address and resolved links of an entry on one network."""

    address: str
    links: Mapping[str, str] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "links": {name: self.links[name] for name in sorted(self.links)},
        }


@dataclass(frozen=True)
class ManifestEntry:
    """One contract in a verification manifest."""

    artifact: ContractArtifact
    networks: Mapping[str, NetworkDeployment]
    source: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contractName": self.artifact.name,
            "sourcePath": self.artifact.source_path,
        }
        if self.source is not None:
            payload["source"] = self.source
        payload["compiler"] = self.artifact.compiler.to_entry_payload()
        payload["networks"] = {
            key: self.networks[key].to_payload() for key in sorted(self.networks)
        }
        return payload


@dataclass(frozen=True)
class VerificationManifest:
    """A verification request, built fresh per call and discarded after dispatch."""

    mode: ManifestMode
    entries: Tuple[ManifestEntry, ...]
    compiler_defaults: Optional[CompilerSettings] = None
    fork_id: Optional[str] = None
    project: Optional[str] = None
    account: Optional[str] = None

    @property
    def contract_names(self) -> Tuple[str, ...]:
        return tuple(entry.artifact.name for entry in self.entries)

    def to_payload(self) -> Dict[str, Any]:
        """
        Serialize to the wire shape expected by the transport.

        Returns:
            For SIMPLE: {"address", "name", "libraryLinks"?}
            Otherwise: {"entries": [...], "compilerConfigDefaults"?}
        """
        if self.mode is ManifestMode.SIMPLE:
            entry = self.entries[0]
            (deployment,) = entry.networks.values()
            payload: Dict[str, Any] = {
                "address": deployment.address,
                "name": entry.artifact.name,
            }
            if deployment.links:
                payload["libraryLinks"] = {
                    name: deployment.links[name] for name in sorted(deployment.links)
                }
            return payload

        payload = {"entries": [entry.to_payload() for entry in self.entries]}
        if self.compiler_defaults is not None:
            payload["compilerConfigDefaults"] = self.compiler_defaults.to_config_payload()
        return payload


@dataclass
class VerificationResult:
    """Outcome of dispatching one manifest."""

    mode: ManifestMode
    response: Any = None
    error: Optional[VerificationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise the wrapped VerificationError, if any."""
        if self.error is not None:
            raise self.error
