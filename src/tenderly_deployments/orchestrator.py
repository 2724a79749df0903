"""Deployment sequencing for tenderly-deployments library."""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

from .exceptions import DeploymentError, DuplicateDeploymentError, UnresolvedLinkError
from .ordering import sort_by_dependencies
from .types import ContractArtifact, DeployedInstance, NetworkTarget

logger = logging.getLogger(__name__)


class ChainClient(Protocol):
    """Compiles, signs and broadcasts contract-creation transactions."""

    def deploy(
        self,
        name: str,
        constructor_args: Optional[Sequence[Any]] = None,
        library_links: Optional[Mapping[str, str]] = None,
    ) -> str:
        ...


class RunRegistry:
    """In-memory record of a run's deployments, keyed by (contract name, network key)."""

    def __init__(self) -> None:
        self._instances: Dict[Tuple[str, str], DeployedInstance] = {}

    def add(self, instance: DeployedInstance) -> None:
        """
        Record a deployment.

        Raises:
            DuplicateDeploymentError: If the contract is already recorded on that network
        """
        key = (instance.name, instance.network_key)
        if key in self._instances:
            raise DuplicateDeploymentError(
                f"Contract '{instance.name}' already deployed on network "
                f"'{instance.network_key}' at {self._instances[key].address}"
            )
        self._instances[key] = instance

    def get(self, name: str, network_key: str) -> Optional[DeployedInstance]:
        return self._instances.get((name, network_key))

    def has(self, name: str, network_key: str) -> bool:
        return (name, network_key) in self._instances

    def instances(self) -> List[DeployedInstance]:
        """All recorded instances, in deployment order."""
        return list(self._instances.values())

    def __iter__(self) -> Iterator[DeployedInstance]:
        return iter(self.instances())

    def __len__(self) -> int:
        return len(self._instances)


class DeploymentOrchestrator:
    """Deploys contracts to one network target, libraries before their dependents."""

    def __init__(self, client: ChainClient, target: NetworkTarget):
        """
        Initialize the orchestrator.

        Args:
            client: Chain client connected to the target network
            target: Network or fork the client deploys to
        """
        self.client = client
        self.target = target
        self.registry = RunRegistry()

    def deploy_library(
        self,
        artifact: ContractArtifact,
        constructor_args: Optional[Sequence[Any]] = None,
    ) -> DeployedInstance:
        """
        Deploy a contract that links against no libraries.

        Args:
            artifact: Contract to deploy
            constructor_args: Constructor arguments, if any

        Returns:
            The recorded DeployedInstance

        Raises:
            UnresolvedLinkError: If the artifact declares library dependencies
            DeploymentError: If the chain client fails or returns no address
        """
        if artifact.libraries:
            raise UnresolvedLinkError(
                f"Contract '{artifact.name}' links against "
                f"{', '.join(artifact.libraries)}; use deploy_linked()"
            )
        return self._deploy(artifact, constructor_args, {})

    def deploy_linked(
        self,
        artifact: ContractArtifact,
        links: Mapping[str, DeployedInstance],
        constructor_args: Optional[Sequence[Any]] = None,
    ) -> DeployedInstance:
        """
        Deploy a contract, linking it against already deployed libraries.

        Args:
            artifact: Contract to deploy
            links: Maps library name -> deployed library instance
            constructor_args: Constructor arguments, if any

        Returns:
            The recorded DeployedInstance

        Raises:
            UnresolvedLinkError: If a declared library is missing from links,
                                 was deployed to another network, or is not
                                 recorded in this run, or if links names a
                                 library the artifact does not declare
            DeploymentError: If the chain client fails or returns no address
        """
        network_key = self.target.key
        undeclared = sorted(set(links) - set(artifact.libraries))
        if undeclared:
            raise UnresolvedLinkError(
                f"Contract '{artifact.name}' does not link against {', '.join(undeclared)}"
            )

        for library in artifact.libraries:
            linked = links.get(library)
            if linked is None:
                raise UnresolvedLinkError(
                    f"Contract '{artifact.name}' requires library '{library}' "
                    "but no deployed instance was given"
                )
            if linked.name != library:
                raise UnresolvedLinkError(
                    f"Link '{library}' of '{artifact.name}' points at a "
                    f"'{linked.name}' deployment"
                )
            if linked.network_key != network_key:
                raise UnresolvedLinkError(
                    f"Library '{library}' is deployed on network '{linked.network_key}', "
                    f"not '{network_key}'"
                )
            recorded = self.registry.get(library, network_key)
            if recorded is None or recorded.address != linked.address:
                raise UnresolvedLinkError(
                    f"Library '{library}' at {linked.address} is not recorded "
                    f"on network '{network_key}' in this run"
                )

        resolved = {library: links[library].address for library in artifact.libraries}
        return self._deploy(artifact, constructor_args, resolved)

    def deploy_all(
        self,
        artifacts: Sequence[ContractArtifact],
        constructor_args: Optional[Mapping[str, Sequence[Any]]] = None,
    ) -> List[DeployedInstance]:
        """
        Deploy a set of contracts in dependency order.

        Every declared library must be part of the set or already deployed in
        this run; this is checked before anything is sent to the chain.

        Args:
            artifacts: Contracts to deploy, in any order
            constructor_args: Maps contract name -> constructor arguments

        Returns:
            Deployed instances in deployment order (libraries first)

        Raises:
            UnresolvedLinkError: If a declared library cannot be resolved
            CyclicLinkError: If the libraries form a cycle
            DeploymentError: If any deployment fails (the run stops there)
        """
        constructor_args = constructor_args or {}
        network_key = self.target.key
        by_name = {artifact.name: artifact for artifact in artifacts}

        for artifact in artifacts:
            for library in artifact.libraries:
                if library not in by_name and not self.registry.has(library, network_key):
                    raise UnresolvedLinkError(
                        f"Contract '{artifact.name}' requires library '{library}', "
                        f"which is neither being deployed nor deployed on '{network_key}'"
                    )

        order = sort_by_dependencies(
            {name: artifact.libraries for name, artifact in by_name.items()}
        )

        deployed: List[DeployedInstance] = []
        for name in order:
            artifact = by_name[name]
            args = constructor_args.get(name)
            if artifact.libraries:
                links = {
                    library: self.registry.get(library, network_key)
                    for library in artifact.libraries
                }
                deployed.append(self.deploy_linked(artifact, links, args))
            else:
                deployed.append(self.deploy_library(artifact, args))
        return deployed

    def _deploy(
        self,
        artifact: ContractArtifact,
        constructor_args: Optional[Sequence[Any]],
        library_links: Dict[str, str],
    ) -> DeployedInstance:
        network_key = self.target.key
        existing = self.registry.get(artifact.name, network_key)
        if existing is not None:
            raise DuplicateDeploymentError(
                f"Contract '{artifact.name}' already deployed on network "
                f"'{network_key}' at {existing.address}"
            )

        logger.info("Deploying %s to network %s", artifact.name, network_key)
        try:
            address = self.client.deploy(
                artifact.name,
                list(constructor_args) if constructor_args is not None else None,
                library_links or None,
            )
        except DeploymentError:
            raise
        except Exception as e:
            raise DeploymentError(f"Failed to deploy '{artifact.name}': {e}") from e

        if not address:
            raise DeploymentError(f"Deployment of '{artifact.name}' returned no address")

        instance = DeployedInstance(
            artifact=artifact,
            address=address,
            target=self.target,
            library_links=library_links,
        )
        self.registry.add(instance)
        logger.info("%s deployed to %s", artifact.name, address)
        return instance
