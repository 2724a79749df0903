"""Environment-driven settings for tenderly-deployments library."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import dotenv_values

from .constants import DEFAULT_COMPILER_VERSION, NETWORK_CONFIG
from .exceptions import ConfigurationError
from .types import CompilerSettings, Fork, LiveNetwork, NetworkTarget


def _flag(value: Optional[str]) -> bool:
    return value == "true"


@dataclass
class Settings:
    """Deployment and verification settings, read from the environment."""

    project: str = ""
    username: str = ""
    access_key: str = ""
    fork_id: str = ""
    automatic_verification: bool = False
    private_verification: bool = False
    compiler_version: str = DEFAULT_COMPILER_VERSION
    evm_version: Optional[str] = None
    env: Optional[Dict[str, str]] = None  # Raw variables, used for RPC URL templates

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[Path, str]] = None,
    ) -> "Settings":
        """
        Load settings from a .env file and the process environment.

        Process environment variables take precedence over the .env file.

        Args:
            environ: Environment mapping (defaults to os.environ)
            dotenv_path: .env file (defaults to ./.env when present)

        Returns:
            Settings instance
        """
        if environ is None:
            environ = os.environ
        if dotenv_path is None:
            dotenv_path = Path.cwd() / ".env"

        values: Dict[str, str] = {}
        if Path(dotenv_path).exists():
            values.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
        values.update(environ)

        return cls(
            project=values.get("TENDERLY_PROJECT", ""),
            username=values.get("TENDERLY_USERNAME", ""),
            access_key=values.get("TENDERLY_ACCESS_KEY", ""),
            fork_id=values.get("TENDERLY_FORK_ID", ""),
            automatic_verification=_flag(values.get("TENDERLY_AUTOMATIC_VERIFICATION")),
            private_verification=_flag(values.get("TENDERLY_PRIVATE_VERIFICATION")),
            compiler_version=values.get("SOLIDITY_VERSION") or DEFAULT_COMPILER_VERSION,
            evm_version=values.get("SOLIDITY_EVM_VERSION") or None,
            env=values,
        )

    @property
    def compiler(self) -> CompilerSettings:
        """Project-wide compiler defaults."""
        return CompilerSettings(version=self.compiler_version, evm_version=self.evm_version)

    def network_config(self, network: str) -> Dict[str, Any]:
        """
        Get the configuration of a named network.

        Raises:
            ConfigurationError: If the network is unknown
        """
        if network not in NETWORK_CONFIG:
            raise ConfigurationError(
                f"Unknown network '{network}', expected one of: {', '.join(NETWORK_CONFIG)}"
            )
        return NETWORK_CONFIG[network]

    def target(self, network: str) -> NetworkTarget:
        """
        Get the verification target for a named network.

        Returns:
            Fork(fork_id) for fork networks, LiveNetwork(chain_id) otherwise

        Raises:
            ConfigurationError: If the network is unknown, or a fork network
                                has no TENDERLY_FORK_ID
        """
        config = self.network_config(network)
        if config["fork"]:
            if not self.fork_id:
                raise ConfigurationError(f"Network '{network}' requires TENDERLY_FORK_ID")
            return Fork(self.fork_id)
        return LiveNetwork(config["chain_id"])

    def rpc_url(self, network: str) -> str:
        """
        Get the RPC URL of a named network, filled in from the environment.

        Raises:
            ConfigurationError: If a variable used by the URL template is unset
        """
        template = self.network_config(network)["rpc_url"]
        env = self.env or {}
        try:
            return template.format_map({k: v for k, v in env.items() if v})
        except KeyError as e:
            raise ConfigurationError(
                f"RPC URL for network '{network}' requires environment variable {e.args[0]}"
            ) from e

    def private_key(self, network: str) -> Optional[str]:
        """Get the deployer private key of a named network, if configured."""
        env_name = self.network_config(network)["private_key_env"]
        if env_name is None:
            return None
        return (self.env or {}).get(env_name) or None

    def require_verification_credentials(self) -> None:
        """
        Raises:
            ConfigurationError: If Tenderly project, username or access key is missing
        """
        missing = [
            name
            for name, value in [
                ("TENDERLY_PROJECT", self.project),
                ("TENDERLY_USERNAME", self.username),
                ("TENDERLY_ACCESS_KEY", self.access_key),
            ]
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing Tenderly settings: {', '.join(missing)}")
