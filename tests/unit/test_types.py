"""Unit tests for data types."""

import pytest

from tenderly_deployments.exceptions import InvalidForkError, VerificationError
from tenderly_deployments.types import (
    CompilerSettings,
    ContractArtifact,
    DeployedInstance,
    Fork,
    LiveNetwork,
    ManifestMode,
    Optimization,
    VerificationResult,
)


class TestNetworkTarget:
    """Test the LiveNetwork / Fork variants."""

    def test_live_network_key_is_chain_id_string(self):
        """Test that a live network key is its chain ID as a string."""
        assert LiveNetwork(1).key == "1"
        assert LiveNetwork(3).key == "3"

    def test_fork_key_is_fork_id(self):
        """Test that a fork key is its fork ID."""
        fork = Fork("c1b2c3d4-0000-4000-8000-1234567890ab")
        assert fork.key == "c1b2c3d4-0000-4000-8000-1234567890ab"

    @pytest.mark.parametrize("fork_id", ["", "   "])
    def test_fork_rejects_empty_id(self, fork_id):
        """Test that a blank fork ID is rejected."""
        with pytest.raises(InvalidForkError):
            Fork(fork_id)

    def test_live_network_rejects_non_positive_chain_id(self):
        """Test that a chain ID below one is rejected."""
        with pytest.raises(ValueError):
            LiveNetwork(0)

    def test_live_network_rejects_string_chain_id(self):
        """Test that a string chain ID is rejected."""
        with pytest.raises(TypeError):
            LiveNetwork("1")

    def test_targets_compare_by_value(self):
        """Test that targets compare by value."""
        assert LiveNetwork(3) == LiveNetwork(3)
        assert Fork("abc") == Fork("abc")
        assert LiveNetwork(1) != Fork("1")


class TestContractArtifact:
    """Test lazy source loading."""

    def test_loads_source_once(self, compiler):
        """Test that the source is read once and then kept."""
        reads = []

        def read_source(path):
            reads.append(path)
            return "contract A {}"

        artifact = ContractArtifact("A", "A.sol", compiler, source_file="contracts/A.sol")

        assert artifact.load_source(read_source) == "contract A {}"
        assert artifact.load_source(read_source) == "contract A {}"
        assert reads == ["contracts/A.sol"]

    def test_reads_source_path_when_no_source_file(self, compiler):
        """Test that the source path is read when no source file is set."""
        artifact = ContractArtifact("A", "A.sol", compiler)
        assert artifact.load_source(lambda path: path) == "A.sol"

    def test_preloaded_source_is_not_reread(self, compiler):
        """Test that a preloaded source is not read again."""
        artifact = ContractArtifact("A", "A.sol", compiler, source_text="cached")
        assert artifact.load_source(lambda path: pytest.fail("should not read")) == "cached"

    def test_libraries_are_tuple(self, compiler):
        """Test that libraries are stored as a tuple."""
        artifact = ContractArtifact("B", "B.sol", compiler, libraries=["Maths"])
        assert artifact.libraries == ("Maths",)

    def test_artifacts_compare_by_identity(self, compiler):
        """Test that artifacts compare by identity."""
        assert ContractArtifact("A", "A.sol", compiler) != ContractArtifact("A", "A.sol", compiler)


class TestDeployedInstance:
    """Test DeployedInstance."""

    def test_network_key_comes_from_target(self, maths):
        """Test that the network key comes from the target."""
        assert DeployedInstance(maths, "0x1", LiveNetwork(3)).network_key == "3"
        assert DeployedInstance(maths, "0x1", Fork("fork-1")).network_key == "fork-1"

    def test_library_links_are_copied(self, mathematitian):
        """Test that library links are copied from the caller."""
        links = {"Maths": "0x1"}
        instance = DeployedInstance(mathematitian, "0x2", LiveNetwork(1), links)
        links["Maths"] = "0x9"

        assert instance.library_links == {"Maths": "0x1"}

    def test_is_immutable(self, maths_instance):
        """Test that instances cannot be changed after creation."""
        with pytest.raises(AttributeError):
            maths_instance.address = "0x0"


class TestCompilerSettings:
    """Test compiler payload serialization."""

    def test_entry_payload_minimal(self):
        """Test that the entry payload carries only the version when nothing else is set."""
        assert CompilerSettings("0.8.9").to_entry_payload() == {"version": "0.8.9"}

    def test_entry_payload_full(self):
        """Test that the entry payload carries EVM version and optimizer settings."""
        settings = CompilerSettings("0.8.9", "london", Optimization(True, 200))
        assert settings.to_entry_payload() == {
            "version": "0.8.9",
            "evmVersion": "london",
            "optimizationsUsed": True,
            "optimizationsCount": 200,
        }

    def test_config_payload_full(self):
        """Test that the config payload uses the request-wide keys."""
        settings = CompilerSettings("0.8.9", "default", Optimization(False, 200))
        assert settings.to_config_payload() == {
            "compiler_version": "0.8.9",
            "evm_version": "default",
            "optimizations_used": False,
            "optimizations_count": 200,
        }


class TestVerificationResult:
    """Test VerificationResult."""

    def test_ok_without_error(self):
        """Test that a result without an error is ok."""
        result = VerificationResult(ManifestMode.BUNDLE, response={"ok": True})
        assert result.ok
        result.raise_for_error()

    def test_raise_for_error(self):
        """Test that raise_for_error raises the kept error."""
        error = VerificationError(ManifestMode.BUNDLE, RuntimeError("boom"))
        result = VerificationResult(ManifestMode.BUNDLE, error=error)

        assert not result.ok
        with pytest.raises(VerificationError):
            result.raise_for_error()
