"""web3 chain client for tenderly-deployments library."""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from eth_account import Account
from web3 import Web3

from .artifacts import find_artifact_file, link_bytecode, parse_hardhat_artifact
from .exceptions import DeploymentError

logger = logging.getLogger(__name__)


class Web3ChainClient:
    """Deploys compiled Hardhat artifacts through a web3 provider."""

    def __init__(
        self,
        w3: Web3,
        artifacts_dir: Union[Path, str],
        private_key: Optional[str] = None,
        gas: Optional[int] = None,
        receipt_timeout: int = 300,
    ):
        """
        Initialize the client.

        Args:
            w3: Connected Web3 instance
            artifacts_dir: Hardhat artifacts directory
            private_key: Signs transactions locally when given; otherwise the
                         node's default (or first) account sends them
            gas: Fixed gas limit (estimated by the node when None)
            receipt_timeout: Seconds to wait for the creation receipt
        """
        self.w3 = w3
        self.artifacts_dir = Path(artifacts_dir)
        self.account = Account.from_key(private_key) if private_key else None
        self.gas = gas
        self.receipt_timeout = receipt_timeout

    def deploy(
        self,
        name: str,
        constructor_args: Optional[Sequence[Any]] = None,
        library_links: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Deploy a contract and wait for it to be mined.

        Args:
            name: Contract name
            constructor_args: Constructor arguments
            library_links: Maps library name -> deployed address

        Returns:
            Address of the new contract

        Raises:
            ArtifactNotFoundError: If the contract was not compiled
            UnresolvedLinkError: If a library placeholder has no address
            DeploymentError: If the transaction reverts or creates no contract
        """
        data = parse_hardhat_artifact(find_artifact_file(self.artifacts_dir, name))
        bytecode = link_bytecode(data["bytecode"], data["link_references"], library_links or {})

        contract = self.w3.eth.contract(abi=data["abi"], bytecode=bytecode)
        constructor = contract.constructor(*(constructor_args or []))

        tx_params: Dict[str, Any] = {}
        if self.gas is not None:
            tx_params["gas"] = self.gas

        if self.account is not None:
            sender = self.account.address
            tx_params.update(
                {
                    "from": sender,
                    "nonce": self.w3.eth.get_transaction_count(sender),
                    "chainId": self.w3.eth.chain_id,
                }
            )
            tx = constructor.build_transaction(tx_params)
            signed = self.account.sign_transaction(tx)
            raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
            tx_hash = self.w3.eth.send_raw_transaction(raw_tx)
        else:
            tx_params["from"] = self.w3.eth.default_account or self.w3.eth.accounts[0]
            tx_hash = constructor.transact(tx_params)

        logger.debug("Creation transaction for %s sent: %s", name, Web3.to_hex(tx_hash))
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)

        if receipt["status"] != 1:
            raise DeploymentError(
                f"Creation transaction for '{name}' reverted: {Web3.to_hex(tx_hash)}"
            )
        address = receipt.get("contractAddress")
        if not address:
            raise DeploymentError(f"Receipt for '{name}' has no contract address")
        return address
