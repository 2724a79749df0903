"""Tenderly verification API client for tenderly-deployments library."""

from typing import Any, Dict, Optional

import requests

from .constants import (
    FORK_VERIFY_PATH,
    PRIVATE_VERIFY_PATH,
    PUBLIC_VERIFY_PATH,
    REQUEST_TIMEOUT,
    SIMPLE_VERIFY_PATH,
    TENDERLY_API_URL,
)
from .exceptions import ConfigurationError, TransportError


class TenderlyTransport:
    """Submits verification requests to the Tenderly REST API."""

    def __init__(
        self,
        access_key: str,
        account: str,
        project: str,
        network_id: Optional[str] = None,
        private: bool = False,
        base_url: str = TENDERLY_API_URL,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the transport.

        Args:
            access_key: Tenderly access key (sent as X-Access-Key)
            account: Tenderly username or organization slug
            project: Tenderly project slug
            network_id: Network ID used for address-only verification
            private: Push bundles to the project instead of public verification
            base_url: API root, overridable for testing
            session: Optional requests session
        """
        self.access_key = access_key
        self.account = account
        self.project = project
        self.network_id = network_id
        self.private = private
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def verify_simple(self, request: Dict[str, Any]) -> Any:
        """
        Verify a single contract by address.

        Args:
            request: {"address", "name", "libraryLinks"?}

        Returns:
            Decoded JSON response

        Raises:
            ConfigurationError: If no network ID is configured
            TransportError: On network errors or non-2xx responses
        """
        if not self.network_id:
            raise ConfigurationError("Address-only verification requires a network ID")

        body: Dict[str, Any] = {
            "network_id": self.network_id,
            "address": request["address"],
            "display_name": request["name"],
        }
        if request.get("libraryLinks"):
            body["libraries"] = request["libraryLinks"]

        path = SIMPLE_VERIFY_PATH.format(account=self.account, project=self.project)
        return self._post(path, body)

    def verify_bundle(self, request: Dict[str, Any]) -> Any:
        """
        Verify a bundle of contracts with full sources.

        Publicly by default, or pushed to the project when private
        verification is enabled.
        """
        if self.private:
            path = PRIVATE_VERIFY_PATH.format(account=self.account, project=self.project)
        else:
            path = PUBLIC_VERIFY_PATH
        return self._post(path, _contracts_body(request))

    def verify_fork_bundle(
        self, request: Dict[str, Any], fork_id: str, project: str, account: str
    ) -> Any:
        """Verify a bundle of contracts deployed on a fork."""
        body = _contracts_body(request)
        body["root"] = ""
        path = FORK_VERIFY_PATH.format(account=account, project=project, fork_id=fork_id)
        return self._post(path, body)

    def _post(self, path: str, body: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(
                url,
                json=body,
                headers={"X-Access-Key": self.access_key},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise TransportError(f"Network error during verification request: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Verification request failed with status {response.status_code}: "
                f"{response.text}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON in verification response: {e}") from e


def _contracts_body(request: Dict[str, Any]) -> Dict[str, Any]:
    body: Dict[str, Any] = {"contracts": request["entries"]}
    if "compilerConfigDefaults" in request:
        body["config"] = request["compilerConfigDefaults"]
    return body
