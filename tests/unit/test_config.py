"""Unit tests for environment-driven settings."""

from pathlib import Path

import pytest

from tenderly_deployments.config import Settings
from tenderly_deployments.exceptions import ConfigurationError
from tenderly_deployments.types import CompilerSettings, Fork, LiveNetwork

FORK_ID = "8c3a6a42-0c8e-4a5e-b7a2-7a1f0c6d2f11"

CREDENTIALS = {
    "TENDERLY_PROJECT": "test-on-fork",
    "TENDERLY_USERNAME": "nenad",
    "TENDERLY_ACCESS_KEY": "secret-key",
}


@pytest.fixture
def no_dotenv(tmp_path: Path) -> Path:
    return tmp_path / "missing.env"


class TestFromEnv:
    """Test loading settings."""

    def test_reads_environment(self, no_dotenv: Path):
        """Test that settings are read from the environment."""
        settings = Settings.from_env({**CREDENTIALS, "TENDERLY_FORK_ID": FORK_ID}, no_dotenv)

        assert settings.project == "test-on-fork"
        assert settings.username == "nenad"
        assert settings.access_key == "secret-key"
        assert settings.fork_id == FORK_ID

    def test_defaults(self, no_dotenv: Path):
        """Test the defaults when nothing is configured."""
        settings = Settings.from_env({}, no_dotenv)

        assert settings.project == ""
        assert settings.automatic_verification is False
        assert settings.private_verification is False
        assert settings.compiler == CompilerSettings("0.8.9")

    def test_reads_dotenv_file(self, tmp_path: Path):
        """Test that settings are read from a .env file."""
        dotenv = tmp_path / ".env"
        dotenv.write_text("TENDERLY_PROJECT=from-file\nTENDERLY_USERNAME=file-user\n")

        settings = Settings.from_env({}, dotenv)

        assert settings.project == "from-file"
        assert settings.username == "file-user"

    def test_environment_overrides_dotenv(self, tmp_path: Path):
        """Test that environment variables win over the .env file."""
        dotenv = tmp_path / ".env"
        dotenv.write_text("TENDERLY_PROJECT=from-file\n")

        settings = Settings.from_env({"TENDERLY_PROJECT": "from-env"}, dotenv)

        assert settings.project == "from-env"

    @pytest.mark.parametrize(
        "value,expected", [("true", True), ("false", False), ("1", False), ("TRUE", False)]
    )
    def test_flags_only_accept_true(self, no_dotenv: Path, value: str, expected: bool):
        """Test that boolean flags are on only for "true"."""
        settings = Settings.from_env(
            {"TENDERLY_AUTOMATIC_VERIFICATION": value, "TENDERLY_PRIVATE_VERIFICATION": value},
            no_dotenv,
        )

        assert settings.automatic_verification is expected
        assert settings.private_verification is expected

    def test_compiler_from_environment(self, no_dotenv: Path):
        """Test that compiler defaults are read from the environment."""
        settings = Settings.from_env(
            {"SOLIDITY_VERSION": "0.8.17", "SOLIDITY_EVM_VERSION": "london"}, no_dotenv
        )

        assert settings.compiler == CompilerSettings("0.8.17", "london")

    def test_cwd_dotenv_used_by_default(self, tmp_path: Path, monkeypatch):
        """Test that the .env file in the working directory is used by default."""
        (tmp_path / ".env").write_text("TENDERLY_PROJECT=cwd-project\n")
        monkeypatch.chdir(tmp_path)

        assert Settings.from_env({}).project == "cwd-project"


class TestTarget:
    """Test network target resolution."""

    def test_live_network(self):
        """Test that a live network maps to its chain ID."""
        assert Settings().target("ropsten") == LiveNetwork(3)
        assert Settings().target("localhost") == LiveNetwork(31337)

    def test_fork_network(self):
        """Test that the fork network maps to the configured fork."""
        assert Settings(fork_id=FORK_ID).target("tenderly") == Fork(FORK_ID)

    def test_fork_network_requires_fork_id(self):
        """Test that the fork network needs TENDERLY_FORK_ID."""
        with pytest.raises(ConfigurationError, match="TENDERLY_FORK_ID"):
            Settings().target("tenderly")

    def test_unknown_network(self):
        """Test that an unknown network name is rejected."""
        with pytest.raises(ConfigurationError, match="Unknown network 'goerli'"):
            Settings().target("goerli")


class TestRpcUrl:
    """Test RPC URL templating."""

    def test_fills_template(self):
        """Test that the RPC URL template is filled from the environment."""
        settings = Settings(env={"ROPSTEN_INFURA_KEY": "abc123"})
        assert settings.rpc_url("ropsten") == "https://ropsten.infura.io/v3/abc123"

    def test_fork_rpc_url(self):
        """Test that the fork RPC URL contains the fork ID."""
        settings = Settings(env={"TENDERLY_FORK_ID": FORK_ID})
        assert settings.rpc_url("tenderly") == f"https://rpc.tenderly.co/fork/{FORK_ID}"

    def test_static_url(self):
        """Test that a static RPC URL is returned as is."""
        assert Settings().rpc_url("localhost") == "http://127.0.0.1:8545"

    @pytest.mark.parametrize("env", [None, {}, {"ROPSTEN_INFURA_KEY": ""}])
    def test_missing_variable(self, env):
        """Test that a missing template variable is named in the error."""
        with pytest.raises(ConfigurationError, match="ROPSTEN_INFURA_KEY"):
            Settings(env=env).rpc_url("ropsten")


class TestPrivateKey:
    """Test deployer key lookup."""

    def test_configured(self):
        """Test that a configured private key is returned."""
        settings = Settings(env={"ROPSTEN_PRIVATE_KEY": "0xkey"})
        assert settings.private_key("ropsten") == "0xkey"

    def test_unset(self):
        """Test that an unset private key gives None."""
        assert Settings(env={}).private_key("ropsten") is None

    def test_network_without_key(self):
        """Test that a network without a key variable gives None."""
        assert Settings(env={"ROPSTEN_PRIVATE_KEY": "0xkey"}).private_key("localhost") is None


class TestVerificationCredentials:
    """Test the Tenderly credential check."""

    def test_complete(self):
        """Test that complete credentials pass."""
        Settings(project="p", username="u", access_key="k").require_verification_credentials()

    def test_lists_missing(self):
        """Test that every missing credential is listed."""
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(project="p").require_verification_credentials()

        assert "TENDERLY_USERNAME" in str(exc_info.value)
        assert "TENDERLY_ACCESS_KEY" in str(exc_info.value)
        assert "TENDERLY_PROJECT" not in str(exc_info.value)

    def test_catchable_as_value_error(self):
        """Test that missing credentials can be caught as ValueError."""
        with pytest.raises(ValueError):
            Settings().require_verification_credentials()
