"""Shared pytest fixtures for tenderly-deployments tests."""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pytest

from tenderly_deployments.manifest import ManifestBuilder
from tenderly_deployments.orchestrator import DeploymentOrchestrator
from tenderly_deployments.sources import read_source_file
from tenderly_deployments.types import (
    CompilerSettings,
    ContractArtifact,
    DeployedInstance,
    LiveNetwork,
)

MATHS_ADDRESS = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa1"
MATHEMATITIAN_ADDRESS = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb2"
GREETER_ADDRESS = "0xbb246bd2cc38022f40e45b11eda28d8ad4487595"


class FakeChainClient:
    """Chain client returning preset addresses and recording every call."""

    def __init__(
        self,
        addresses: Optional[Mapping[str, str]] = None,
        failures: Optional[Mapping[str, Exception]] = None,
    ):
        self.addresses = dict(addresses or {})
        self.failures = dict(failures or {})
        self.calls: List[Dict[str, Any]] = []

    def deploy(
        self,
        name: str,
        constructor_args: Optional[Sequence[Any]] = None,
        library_links: Optional[Mapping[str, str]] = None,
    ) -> str:
        self.calls.append(
            {"name": name, "constructor_args": constructor_args, "library_links": library_links}
        )
        if name in self.failures:
            raise self.failures[name]
        if name in self.addresses:
            return self.addresses[name]
        return f"0x{len(self.calls):040x}"


class FakeTransport:
    """Verification transport recording requests; optionally failing."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[tuple] = []

    def _record(self, *call: Any) -> Dict[str, Any]:
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return {"ok": True, "operation": call[0]}

    def verify_simple(self, request: Dict[str, Any]) -> Any:
        return self._record("simple", request)

    def verify_bundle(self, request: Dict[str, Any]) -> Any:
        return self._record("bundle", request)

    def verify_fork_bundle(
        self, request: Dict[str, Any], fork_id: str, project: str, account: str
    ) -> Any:
        return self._record("fork-bundle", request, fork_id, project, account)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def artifacts_dir(fixtures_dir: Path) -> Path:
    """Return the path to the sample Hardhat artifacts."""
    return fixtures_dir / "artifacts"


@pytest.fixture
def compiler() -> CompilerSettings:
    return CompilerSettings(version="0.8.9")


@pytest.fixture
def maths(compiler: CompilerSettings) -> ContractArtifact:
    """The Maths library."""
    return ContractArtifact(
        name="Maths",
        source_path="libraries/Maths.sol",
        compiler=compiler,
        source_file="contracts/libraries/Maths.sol",
    )


@pytest.fixture
def mathematitian(compiler: CompilerSettings) -> ContractArtifact:
    """A contract linking against Maths."""
    return ContractArtifact(
        name="Mathematitian",
        source_path="Mathematitian.sol",
        compiler=compiler,
        libraries=("Maths",),
        source_file="contracts/Mathematitian.sol",
    )


@pytest.fixture
def greeter(compiler: CompilerSettings) -> ContractArtifact:
    """A standalone contract with a constructor argument."""
    return ContractArtifact(
        name="Greeter",
        source_path="contracts/Greeter.sol",
        compiler=compiler,
        source_file="contracts/Greeter.sol",
    )


@pytest.fixture
def mainnet() -> LiveNetwork:
    return LiveNetwork(1)


@pytest.fixture
def maths_instance(maths: ContractArtifact, mainnet: LiveNetwork) -> DeployedInstance:
    return DeployedInstance(maths, MATHS_ADDRESS, mainnet)


@pytest.fixture
def mathematitian_instance(
    mathematitian: ContractArtifact, mainnet: LiveNetwork
) -> DeployedInstance:
    return DeployedInstance(
        mathematitian, MATHEMATITIAN_ADDRESS, mainnet, {"Maths": MATHS_ADDRESS}
    )


@pytest.fixture
def source_reads(fixtures_dir: Path) -> List[str]:
    """Paths read through the builder fixture, in order."""
    return []


@pytest.fixture
def builder(fixtures_dir: Path, source_reads: List[str]) -> ManifestBuilder:
    """Manifest builder reading sources from the fixtures directory."""

    def read_source(path: str) -> str:
        source_reads.append(path)
        return read_source_file(path, fixtures_dir)

    return ManifestBuilder(read_source=read_source)


@pytest.fixture
def chain_client() -> FakeChainClient:
    return FakeChainClient(
        addresses={"Maths": MATHS_ADDRESS, "Mathematitian": MATHEMATITIAN_ADDRESS}
    )


@pytest.fixture
def make_chain_client():
    """Factory for chain clients with custom addresses or failures."""
    return FakeChainClient


@pytest.fixture
def orchestrator(chain_client: FakeChainClient, mainnet: LiveNetwork) -> DeploymentOrchestrator:
    return DeploymentOrchestrator(chain_client, mainnet)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def failing_transport() -> FakeTransport:
    return FakeTransport(error=RuntimeError("service unavailable"))
