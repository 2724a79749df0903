"""Hardhat artifact parsers for tenderly-deployments library."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .constants import DEFAULT_COMPILER_VERSION, DEFAULT_SOURCES_DIR
from .exceptions import ArtifactNotFoundError, UnresolvedLinkError
from .types import CompilerSettings, ContractArtifact, Optimization

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def find_artifact_file(artifacts_dir: Union[Path, str], name: str) -> Path:
    """
    Locate the Hardhat artifact JSON for a contract.

    Hardhat writes artifacts to artifacts/<sourceName>/<ContractName>.json,
    next to a <ContractName>.dbg.json file.

    Args:
        artifacts_dir: Hardhat artifacts directory
        name: Contract name

    Returns:
        Path to the artifact file

    Raises:
        ArtifactNotFoundError: If no artifact for the contract exists
    """
    root = Path(artifacts_dir)
    matches = sorted(
        path for path in root.rglob(f"{name}.json")
        if "build-info" not in path.relative_to(root).parts
    )
    if not matches:
        raise ArtifactNotFoundError(
            f"No artifact for contract '{name}' under {root}. "
            "Run `npx hardhat compile` first."
        )
    if len(matches) > 1:
        logger.warning(
            "Several artifacts named %s found, using %s", name, matches[0]
        )
    return matches[0]


def parse_hardhat_artifact(file_path: Path) -> Dict[str, Any]:
    """
    Parse a Hardhat artifact JSON file.

    Args:
        file_path: Path to <ContractName>.json

    Returns:
        Dictionary with canonical field names:
        contract_name, source_name, abi, bytecode, link_references
    """
    with open(file_path) as f:
        data = json.load(f)

    return {
        "contract_name": data["contractName"],
        "source_name": data["sourceName"],
        "abi": data["abi"],
        "bytecode": data["bytecode"],
        "link_references": data.get("linkReferences", {}),
    }


def library_names(link_references: Mapping[str, Mapping[str, Any]]) -> Tuple[str, ...]:
    """
    List the libraries a contract must be linked against.

    Args:
        link_references: Hardhat linkReferences ({sourceName: {libName: [...]}})

    Returns:
        Sorted, de-duplicated library names
    """
    names = {name for libraries in link_references.values() for name in libraries}
    return tuple(sorted(names))


def parse_build_info_compiler(file_path: Path) -> CompilerSettings:
    """
    Read compiler settings from a Hardhat build-info file.

    Args:
        file_path: Path to artifacts/build-info/<hash>.json

    Returns:
        CompilerSettings with version, EVM version and optimizer settings
    """
    with open(file_path) as f:
        data = json.load(f)

    settings = data.get("input", {}).get("settings", {})
    optimizer = settings.get("optimizer")

    optimization = None
    if optimizer is not None:
        optimization = Optimization(
            enabled=bool(optimizer.get("enabled", False)),
            runs=int(optimizer.get("runs", 200)),
        )

    return CompilerSettings(
        version=data["solcVersion"],
        evm_version=settings.get("evmVersion"),
        optimization=optimization,
    )


def _build_info_path(artifact_file: Path) -> Optional[Path]:
    """Resolve the build-info file referenced by an artifact's .dbg.json, if any."""
    dbg_file = artifact_file.with_name(f"{artifact_file.stem}.dbg.json")
    try:
        with open(dbg_file) as f:
            build_info = json.load(f).get("buildInfo")
    except (FileNotFoundError, json.JSONDecodeError):
        return None

    if not build_info:
        return None
    path = (dbg_file.parent / build_info).resolve()
    return path if path.exists() else None


def load_contract_artifact(
    artifacts_dir: Union[Path, str],
    name: str,
    sources_dir: str = DEFAULT_SOURCES_DIR,
    default_compiler: Optional[CompilerSettings] = None,
) -> ContractArtifact:
    """
    Build a ContractArtifact from Hardhat compilation output.

    Args:
        artifacts_dir: Hardhat artifacts directory
        name: Contract name
        sources_dir: Hardhat sources directory; stripped from the logical source path
        default_compiler: Used when no build-info file is available
                          (defaults to solc DEFAULT_COMPILER_VERSION)

    Returns:
        ContractArtifact whose source_file is the Hardhat sourceName
        (e.g. "contracts/libraries/Maths.sol") and source_path is relative to
        sources_dir (e.g. "libraries/Maths.sol")

    Raises:
        ArtifactNotFoundError: If the artifact does not exist
    """
    artifact_file = find_artifact_file(artifacts_dir, name)
    data = parse_hardhat_artifact(artifact_file)

    build_info = _build_info_path(artifact_file)
    if build_info is not None:
        compiler = parse_build_info_compiler(build_info)
    else:
        compiler = default_compiler or CompilerSettings(version=DEFAULT_COMPILER_VERSION)

    source_name = data["source_name"]
    prefix = sources_dir.rstrip("/") + "/"
    source_path = source_name[len(prefix):] if source_name.startswith(prefix) else source_name

    return ContractArtifact(
        name=data["contract_name"],
        source_path=source_path,
        compiler=compiler,
        libraries=library_names(data["link_references"]),
        source_file=source_name,
    )


def link_bytecode(
    bytecode: str,
    link_references: Mapping[str, Mapping[str, List[Dict[str, int]]]],
    library_links: Mapping[str, str],
) -> str:
    """
    Replace library placeholders in creation bytecode with addresses.

    Args:
        bytecode: 0x-prefixed creation bytecode with link placeholders
        link_references: Hardhat linkReferences (byte offsets into bytecode)
        library_links: Maps library name -> deployed address

    Returns:
        Linked 0x-prefixed bytecode

    Raises:
        UnresolvedLinkError: If a referenced library has no address
        ValueError: If a library address is malformed
    """
    code = bytecode[2:] if bytecode.startswith("0x") else bytecode

    for libraries in link_references.values():
        for library, references in libraries.items():
            address = library_links.get(library)
            if address is None:
                raise UnresolvedLinkError(f"No address given for library '{library}'")
            if not _ADDRESS_RE.match(address):
                raise ValueError(f"Invalid address for library '{library}': {address}")

            replacement = address[2:].lower()
            for reference in references:
                start = reference["start"] * 2
                end = start + reference["length"] * 2
                code = code[:start] + replacement + code[end:]

    return "0x" + code
