"""
Source verification against an Etherscan-compatible explorer API.

Verification is advisory: it never touches on-chain state and its failures
are reported per contract without failing the deployment.
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

import requests
from web3 import Web3

from .artifacts import ArtifactStore, encode_constructor_args
from .deployer import DeploymentRecord
from .errors import ConfigurationError, VerificationError

logger = logging.getLogger(__name__)

VERIFIED = "verified"
FAILED = "failed"


class VerificationClient:
    def __init__(self, api_url: str, api_key: str, artifacts: ArtifactStore, w3: Web3,
                 chain_id: Optional[int] = None, settle_delay: int = 60,
                 poll_interval: int = 5, max_polls: int = 24,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.api_url = api_url
        self.api_key = api_key
        self.artifacts = artifacts
        self.w3 = w3
        self.chain_id = chain_id
        self.settle_delay = settle_delay
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.session = session or requests.Session()
        self.sleep = sleep
        self._settled = False

    def settle(self):
        """Give the explorer's indexer time to see the new bytecode, once per run"""
        if self._settled:
            return
        if self.settle_delay > 0:
            logger.info(f"Waiting for {self.settle_delay}s before verifying contracts..")
            self.sleep(self.settle_delay)
        self._settled = True

    def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        params = {"chainid": self.chain_id} if self.chain_id is not None else {}
        try:
            if method == "POST":
                response = self.session.post(self.api_url, params=params, data=payload, timeout=30)
            else:
                response = self.session.get(self.api_url, params={**params, **payload}, timeout=30)
            response.raise_for_status()
            body = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise VerificationError(f"Verification API request failed: {e}") from e
        if not isinstance(body, dict):
            raise VerificationError(f"Unexpected verification API response: {body!r}")
        return body

    def check_constructor_args(self, record: DeploymentRecord) -> str:
        """
        Assert the arguments about to be submitted are the ones the contract was
        created with, by comparing their encoding with the creation transaction input.
        Returns the hex encoding (no 0x prefix) expected by the explorer.
        """
        abi = self.artifacts.load(record.artifact_identifier).abi
        encoded = encode_constructor_args(abi, record.constructor_args)
        if not record.tx_hash:
            raise VerificationError(f"No creation transaction recorded for {record.address}")

        try:
            creation_input = bytes(self.w3.eth.get_transaction(record.tx_hash)["input"])
        except Exception as e:
            raise VerificationError(f"Could not fetch creation transaction {record.tx_hash}: {e}") from e
        if not creation_input.endswith(encoded):
            raise VerificationError(
                f"Constructor arguments for {record.source_path} at {record.address} "
                f"do not match the ones used at deployment"
            )
        return encoded.hex()

    def verify(self, address: str, constructor_args: Sequence[Any], source_path: str,
               encoded_args: Optional[str] = None) -> str:
        """Submit one contract for verification and wait for the explorer's verdict"""
        self.settle()

        artifact = self.artifacts.load(source_path)
        build_info = self.artifacts.load_build_info(artifact)
        if "input" not in build_info or "solcLongVersion" not in build_info:
            raise VerificationError(f"Build info for {source_path} lacks compiler input or version")
        if encoded_args is None:
            encoded_args = encode_constructor_args(artifact.abi, constructor_args).hex()

        submission = self._call("POST", {
            "apikey": self.api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": address,
            "sourceCode": json.dumps(build_info["input"]),
            "codeformat": "solidity-standard-json-input",
            "contractname": artifact.fully_qualified_name,
            "compilerversion": f"v{build_info['solcLongVersion']}",
            "constructorArguements": encoded_args,
        })

        result = str(submission.get("result", ""))
        if str(submission.get("status")) != "1":
            if "already verified" in result.lower():
                logger.info(f"{source_path} at {address} is already verified")
                return VERIFIED
            raise VerificationError(f"Verification of {source_path} rejected: {result}")

        guid = result
        for _ in range(self.max_polls):
            self.sleep(self.poll_interval)
            status = self._call("GET", {
                "apikey": self.api_key,
                "module": "contract",
                "action": "checkverifystatus",
                "guid": guid,
            })
            verdict = str(status.get("result", ""))
            if verdict.startswith("Pass") or "already verified" in verdict.lower():
                logger.info(f"Verified {source_path} contract at {address}")
                return VERIFIED
            if "pending" in verdict.lower():
                continue
            raise VerificationError(f"Verification of {source_path} failed: {verdict}")

        raise VerificationError(f"Verification of {source_path} still pending after {self.max_polls} polls")

    def verify_record(self, record: DeploymentRecord) -> str:
        try:
            encoded_args = self.check_constructor_args(record)
            return self.verify(record.address, record.constructor_args, record.artifact_identifier,
                               encoded_args=encoded_args)
        except ConfigurationError as e:
            raise VerificationError(str(e)) from e

    def verify_all(self, records: Iterable[DeploymentRecord]) -> Dict[str, str]:
        """Verify every record; one contract failing never stops the others"""
        outcomes = {}
        for record in records:
            try:
                outcomes[record.address] = self.verify_record(record)
            except Exception as e:
                logger.warning(f"Verification failed for {record.source_path} at {record.address}: {e}")
                outcomes[record.address] = FAILED
        return outcomes
