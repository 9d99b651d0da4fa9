"""
Reads chain state over raw JSON-RPC.

Used against the L2 endpoint to obtain the tip that seeds the genesis header,
and against the L1 endpoint to report the chain id being deployed to.
"""

import logging
from typing import Any, Dict

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from .errors import ProviderError

logger = logging.getLogger(__name__)


def connect(rpc_url: str) -> Web3:
    """Open an HTTP connection to an RPC endpoint, failing fast when unreachable"""
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    if not w3.is_connected():
        raise ProviderError(f"Could not connect to RPC URL: {rpc_url}")
    logger.info(f"Connected to blockchain at {rpc_url}")
    return w3


class ChainStateReader:
    def __init__(self, w3: Web3):
        self.w3 = w3

    def _request(self, method: str, params: list) -> Any:
        try:
            response = self.w3.provider.make_request(method, params)
        except Exception as e:
            raise ProviderError(f"{method} request failed: {e}") from e

        if not isinstance(response, dict):
            raise ProviderError(f"{method} returned a malformed response: {response!r}")
        if response.get("error"):
            raise ProviderError(f"{method} returned an error: {response['error']}")
        if "result" not in response:
            raise ProviderError(f"{method} response has no result")
        return response["result"]

    def fetch_chain_id(self) -> int:
        """Chain id as reported by eth_chainId"""
        result = self._request("eth_chainId", [])
        try:
            return int(result, 16) if isinstance(result, str) else int(result)
        except (TypeError, ValueError):
            raise ProviderError(f"eth_chainId returned a malformed chain id: {result!r}")

    def fetch_latest_block(self) -> Dict[str, Any]:
        """
        Latest block as {number, hash, stateRoot}, fields left exactly as the
        endpoint encoded them (hex strings).
        """
        block = self._request("eth_getBlockByNumber", ["latest", True])
        if not isinstance(block, dict):
            raise ProviderError(f"eth_getBlockByNumber returned no block: {block!r}")

        latest = {
            "number": block.get("number"),
            "hash": block.get("hash"),
            "stateRoot": block.get("stateRoot"),
        }
        logger.info(f"Latest L2 block number for L1 genesis: {latest['number']}")
        logger.info(f"Latest L2 block hash for L1 genesis: {latest['hash']}")
        logger.info(f"Latest L2 block state root for L1 genesis: {latest['stateRoot']}")
        return latest
