"""Verification manifest construction for tenderly-deployments library."""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .exceptions import (
    DuplicateDeploymentError,
    InvalidForkError,
    SourceReadError,
    UnresolvedLinkError,
)
from .ordering import sort_by_dependencies
from .sources import read_source_file
from .types import (
    CompilerSettings,
    ContractArtifact,
    DeployedInstance,
    ManifestEntry,
    ManifestMode,
    NetworkDeployment,
    VerificationManifest,
)

logger = logging.getLogger(__name__)


class ManifestBuilder:
    """
    Turns deployed instances into verification manifests.

    A builder lives for one run; source files are read at most once per path.
    """

    def __init__(
        self,
        read_source: Callable[[str], str] = read_source_file,
        compiler_defaults: Optional[CompilerSettings] = None,
    ):
        """
        Initialize the builder.

        Args:
            read_source: Callable mapping a source path to its text
            compiler_defaults: Request-wide compiler config sent with bundles
        """
        self._read_source = read_source
        self._sources: Dict[str, str] = {}
        self.compiler_defaults = compiler_defaults

    def build_simple(self, instance: DeployedInstance) -> VerificationManifest:
        """
        Build an address-only manifest for a single contract.

        No source is included; the service resolves linked libraries by name
        from definitions it has already verified.

        Raises:
            UnresolvedLinkError: If a declared library has no linked address
        """
        _check_declared_links(instance)
        entry = ManifestEntry(
            artifact=instance.artifact,
            networks={
                instance.network_key: NetworkDeployment(
                    instance.address, dict(instance.library_links)
                )
            },
        )
        return VerificationManifest(mode=ManifestMode.SIMPLE, entries=(entry,))

    def build_bundle(
        self,
        instances: Sequence[DeployedInstance],
        references: Sequence[ContractArtifact] = (),
        external: Iterable[str] = (),
    ) -> VerificationManifest:
        """
        Build a multi-contract manifest with full sources.

        Args:
            instances: Deployed contracts, in any order
            references: Artifacts shipped with source but no address
                        (e.g. a library already verified elsewhere)
            external: Library names whose links are accepted without a
                      matching entry

        Returns:
            Manifest whose entries put every library before its dependents

        Raises:
            UnresolvedLinkError: If a link matches no entry, reference or external name
            CyclicLinkError: If the library graph has a cycle
            DuplicateDeploymentError: If one contract appears twice on a network
            SourceReadError: If a source file cannot be read
        """
        entries = self._build_entries(instances, references, external)
        return VerificationManifest(
            mode=ManifestMode.BUNDLE,
            entries=entries,
            compiler_defaults=self.compiler_defaults,
        )

    def build_fork_bundle(
        self,
        instances: Sequence[DeployedInstance],
        fork_id: str,
        references: Sequence[ContractArtifact] = (),
        external: Iterable[str] = (),
        project: Optional[str] = None,
        account: Optional[str] = None,
    ) -> VerificationManifest:
        """
        Build a bundle scoped to a single fork.

        Every entry's network table uses fork_id as its only key, whatever
        network key the instances were deployed under.

        Args:
            instances: Deployed contracts, all from one deployment target
            fork_id: Fork identifier
            references: As for build_bundle()
            external: As for build_bundle()
            project: Project slug the fork belongs to (defaults to the dispatcher's)
            account: Account owning the project (defaults to the dispatcher's)

        Raises:
            InvalidForkError: If fork_id is empty, or the instances carry more
                              than one network key
            Everything build_bundle() raises
        """
        if not isinstance(fork_id, str) or not fork_id.strip():
            raise InvalidForkError("Fork bundle requires a non-empty fork ID")

        keys = sorted({instance.network_key for instance in instances})
        if len(keys) > 1:
            raise InvalidForkError(
                f"Fork bundle mixes deployments from networks {', '.join(keys)}; "
                f"cannot map them all to fork '{fork_id}'"
            )

        entries = self._build_entries(instances, references, external, key_override=fork_id)
        return VerificationManifest(
            mode=ManifestMode.FORK_BUNDLE,
            entries=entries,
            compiler_defaults=self.compiler_defaults,
            fork_id=fork_id,
            project=project,
            account=account,
        )

    def check_buildable(
        self,
        artifacts: Sequence[ContractArtifact],
        references: Sequence[ContractArtifact] = (),
        external: Iterable[str] = (),
    ) -> None:
        """
        Check that a bundle for these artifacts can be built once they are deployed.

        Every declared library must be among the artifacts, a reference or an
        external name. Sources are read now and reused by later builds.

        Args:
            artifacts: Contracts about to be deployed
            references: As for build_bundle()
            external: As for build_bundle()

        Raises:
            ValueError: If there is nothing to verify
            UnresolvedLinkError: If a declared library would have no entry
            CyclicLinkError: If the library graph has a cycle
            DuplicateDeploymentError: If two different artifacts share a name
            SourceReadError: If a source file cannot be read
        """
        if not artifacts and not references:
            raise ValueError("Nothing to verify: no artifacts or reference artifacts given")

        known: Dict[str, ContractArtifact] = {}
        for artifact in [*artifacts, *references]:
            _register_artifact(known, artifact)

        unchecked = set(external)
        for name in sorted(known):
            for library in known[name].libraries:
                if library not in known and library not in unchecked:
                    raise UnresolvedLinkError(
                        f"Contract '{name}' links library '{library}', which is not "
                        "being deployed; include it or mark it as reference or external"
                    )

        sort_by_dependencies({name: artifact.libraries for name, artifact in known.items()})

        for artifact in known.values():
            artifact.load_source(self._cached_read)

    def _build_entries(
        self,
        instances: Sequence[DeployedInstance],
        references: Sequence[ContractArtifact],
        external: Iterable[str],
        key_override: Optional[str] = None,
    ) -> Tuple[ManifestEntry, ...]:
        if not instances and not references:
            raise ValueError("Nothing to verify: no instances or reference artifacts given")

        artifacts: Dict[str, ContractArtifact] = {}
        tables: Dict[str, Dict[str, NetworkDeployment]] = {}

        for instance in instances:
            _register_artifact(artifacts, instance.artifact)
            _check_declared_links(instance)
            key = key_override if key_override is not None else instance.network_key
            table = tables.setdefault(instance.name, {})
            if key in table:
                raise DuplicateDeploymentError(
                    f"Contract '{instance.name}' appears twice on network '{key}' "
                    f"({table[key].address}, {instance.address})"
                )
            table[key] = NetworkDeployment(instance.address, dict(instance.library_links))

        reference_names: Set[str] = set()
        for artifact in references:
            _register_artifact(artifacts, artifact)
            if artifact.name not in tables:
                reference_names.add(artifact.name)
                tables[artifact.name] = {}

        dependencies: Dict[str, Set[str]] = {}
        for name, artifact in artifacts.items():
            linked = set(artifact.libraries)
            for deployment in tables[name].values():
                linked.update(deployment.links)
            dependencies[name] = linked
        order = sort_by_dependencies(dependencies)

        _check_link_targets(tables, reference_names | set(external))

        entries: List[ManifestEntry] = []
        for name in order:
            artifact = artifacts[name]
            entries.append(
                ManifestEntry(
                    artifact=artifact,
                    networks=tables[name],
                    source=artifact.load_source(self._cached_read),
                )
            )

        logger.debug("Built manifest entries: %s", [entry.artifact.name for entry in entries])
        return tuple(entries)

    def _cached_read(self, path: str) -> str:
        if path not in self._sources:
            try:
                self._sources[path] = self._read_source(path)
            except SourceReadError:
                raise
            except OSError as e:
                raise SourceReadError(f"Cannot read contract source {path}: {e}") from e
        return self._sources[path]


def _register_artifact(artifacts: Dict[str, ContractArtifact], artifact: ContractArtifact) -> None:
    existing = artifacts.setdefault(artifact.name, artifact)
    if existing is not artifact:
        raise DuplicateDeploymentError(
            f"Two different artifacts are named '{artifact.name}' "
            f"({existing.source_path}, {artifact.source_path})"
        )


def _check_declared_links(instance: DeployedInstance) -> None:
    missing = [
        library for library in instance.artifact.libraries
        if library not in instance.library_links
    ]
    if missing:
        raise UnresolvedLinkError(
            f"Contract '{instance.name}' at {instance.address} has no address "
            f"for libraries: {', '.join(missing)}"
        )


def _check_link_targets(
    tables: Dict[str, Dict[str, NetworkDeployment]], unchecked: Set[str]
) -> None:
    """Every link must hit an entry with the same address on the same network key."""
    for name in sorted(tables):
        for key, deployment in sorted(tables[name].items()):
            for library, address in sorted(deployment.links.items()):
                if library in unchecked:
                    continue
                if library not in tables:
                    raise UnresolvedLinkError(
                        f"Contract '{name}' links library '{library}', which is not "
                        "in the manifest; include it or mark it as reference or external"
                    )
                linked = tables[library].get(key)
                if linked is None or linked.address.lower() != address.lower():
                    raise UnresolvedLinkError(
                        f"Contract '{name}' links '{library}' at {address} on network "
                        f"'{key}', but the manifest has no such deployment"
                    )
