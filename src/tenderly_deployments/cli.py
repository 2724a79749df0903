"""Command line interface for tenderly-deployments library."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import typer
from web3 import Web3

from .artifacts import load_contract_artifact
from .chain import Web3ChainClient
from .config import Settings
from .constants import DEFAULT_ARTIFACTS_DIR
from .dispatcher import Dispatcher
from .exceptions import ConfigurationError, TenderlyDeploymentsError
from .manifest import ManifestBuilder
from .orchestrator import ChainClient, DeploymentOrchestrator
from .pipeline import run_pipeline, verify_deployed
from .sources import read_source_file
from .transport import TenderlyTransport
from .types import ContractArtifact, DeployedInstance, ManifestMode, VerificationResult

app = typer.Typer(help="Deploy contracts and verify them on Tenderly.", no_args_is_help=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def make_chain_client(settings: Settings, network: str, artifacts_dir: Path) -> ChainClient:
    w3 = Web3(Web3.HTTPProvider(settings.rpc_url(network)))
    return Web3ChainClient(w3, artifacts_dir, private_key=settings.private_key(network))


def make_transport(settings: Settings, network: str) -> TenderlyTransport:
    settings.require_verification_credentials()
    return TenderlyTransport(
        access_key=settings.access_key,
        account=settings.username,
        project=settings.project,
        network_id=str(settings.network_config(network)["chain_id"]),
        private=settings.private_verification,
    )


def _default_mode(settings: Settings, network: str) -> ManifestMode:
    if settings.network_config(network)["fork"]:
        return ManifestMode.FORK_BUNDLE
    if settings.automatic_verification:
        return ManifestMode.SIMPLE
    return ManifestMode.BUNDLE


def _split_pair(value: str, option: str) -> Tuple[str, str]:
    name, sep, rest = value.partition("=")
    if not sep or not name or not rest:
        raise ConfigurationError(f"Expected NAME=VALUE for {option}, got '{value}'")
    return name, rest


def parse_constructor_args(values: Sequence[str]) -> Dict[str, List[Any]]:
    """Parse NAME=JSON options into constructor argument lists."""
    result: Dict[str, List[Any]] = {}
    for value in values:
        name, raw = _split_pair(value, "--args")
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = raw
        result[name] = parsed if isinstance(parsed, list) else [parsed]
    return result


def parse_links(values: Sequence[str]) -> Dict[str, Dict[str, str]]:
    """Parse CONTRACT:LIBRARY=ADDRESS options."""
    result: Dict[str, Dict[str, str]] = {}
    for value in values:
        key, address = _split_pair(value, "--link")
        contract, sep, library = key.partition(":")
        if not sep or not contract or not library:
            raise ConfigurationError(f"Expected CONTRACT:LIBRARY=ADDRESS for --link, got '{value}'")
        result.setdefault(contract, {})[library] = address
    return result


def _load_artifacts(
    names: Sequence[str], artifacts_dir: Path, settings: Settings
) -> List[ContractArtifact]:
    return [
        load_contract_artifact(artifacts_dir, name, default_compiler=settings.compiler)
        for name in names
    ]


def _report(results: Sequence[VerificationResult]) -> None:
    failed = False
    for result in results:
        if result.ok:
            typer.echo(f"{result.mode.value} verification submitted")
        else:
            failed = True
            typer.echo(f"{result.mode.value} verification failed: {result.error.cause}", err=True)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def deploy(
    contracts: List[str] = typer.Argument(..., help="Contracts to deploy, in any order"),
    network: str = typer.Option("localhost", "--network", "-n", help="Hardhat network name"),
    mode: Optional[ManifestMode] = typer.Option(None, "--mode", "-m", case_sensitive=False),
    reference: List[str] = typer.Option([], "--reference", help="Ship source only, no address"),
    external: List[str] = typer.Option([], "--external", help="Library already verified"),
    args: List[str] = typer.Option([], "--args", help="NAME=JSON constructor arguments"),
    artifacts_dir: Path = typer.Option(Path(DEFAULT_ARTIFACTS_DIR), "--artifacts"),
    root: Path = typer.Option(Path("."), "--root", help="Project root for source files"),
) -> None:
    """Deploy contracts (libraries first) and submit them for verification."""
    try:
        settings = Settings.from_env()
        target = settings.target(network)
        mode = mode or _default_mode(settings, network)
        orchestrator = DeploymentOrchestrator(
            make_chain_client(settings, network, artifacts_dir), target
        )
        builder = ManifestBuilder(
            read_source=lambda path: read_source_file(path, root),
            compiler_defaults=settings.compiler,
        )
        dispatcher = Dispatcher(
            make_transport(settings, network), project=settings.project, account=settings.username
        )
        result = run_pipeline(
            orchestrator,
            builder,
            dispatcher,
            _load_artifacts(contracts, artifacts_dir, settings),
            mode,
            constructor_args=parse_constructor_args(args),
            references=_load_artifacts(reference, artifacts_dir, settings),
            external=external,
            fork_id=settings.fork_id or None,
        )
    except TenderlyDeploymentsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    for instance in result.instances:
        typer.echo(f"{instance.name} deployed to {instance.address}")
    _report(result.results)


@app.command()
def verify(
    deployments: List[str] = typer.Argument(..., help="NAME=ADDRESS of deployed contracts"),
    network: str = typer.Option("localhost", "--network", "-n", help="Hardhat network name"),
    mode: Optional[ManifestMode] = typer.Option(None, "--mode", "-m", case_sensitive=False),
    link: List[str] = typer.Option([], "--link", help="CONTRACT:LIBRARY=ADDRESS"),
    reference: List[str] = typer.Option([], "--reference", help="Ship source only, no address"),
    external: List[str] = typer.Option([], "--external", help="Library already verified"),
    artifacts_dir: Path = typer.Option(Path(DEFAULT_ARTIFACTS_DIR), "--artifacts"),
    root: Path = typer.Option(Path("."), "--root", help="Project root for source files"),
) -> None:
    """Submit already deployed contracts for verification."""
    try:
        settings = Settings.from_env()
        target = settings.target(network)
        mode = mode or _default_mode(settings, network)
        links = parse_links(link)

        instances = []
        for value in deployments:
            name, address = _split_pair(value, "deployment")
            artifact = load_contract_artifact(
                artifacts_dir, name, default_compiler=settings.compiler
            )
            instances.append(
                DeployedInstance(artifact, address, target, links.get(name, {}))
            )

        builder = ManifestBuilder(
            read_source=lambda path: read_source_file(path, root),
            compiler_defaults=settings.compiler,
        )
        dispatcher = Dispatcher(
            make_transport(settings, network), project=settings.project, account=settings.username
        )
        results = verify_deployed(
            builder,
            dispatcher,
            instances,
            mode,
            references=_load_artifacts(reference, artifacts_dir, settings),
            external=external,
            fork_id=settings.fork_id or None,
        )
    except TenderlyDeploymentsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    _report(results)


if __name__ == "__main__":
    app()
