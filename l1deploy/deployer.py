"""
Single-contract deployment.

Deployments are never retried: every address produced here is input to a
later step, and a blind retry can leave duplicate orphaned contracts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

from web3 import Web3

from .artifacts import ArtifactStore
from .errors import DeploymentError
from .transactions import send_and_confirm, succeeded, transaction_params

logger = logging.getLogger(__name__)


@dataclass
class DeploymentRecord:
    """One deployed contract, as needed to verify it later"""

    artifact_identifier: str
    address: str
    constructor_args: Tuple[Any, ...] = ()
    source_path: str = ""
    tx_hash: str = field(default="", repr=False)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "artifact": self.artifact_identifier,
            "address": self.address,
            "sourcePath": self.source_path,
            "txHash": self.tx_hash,
        }


class ContractDeployer:
    def __init__(self, w3: Web3, account, artifacts: ArtifactStore, timeout: int = 300):
        self.w3 = w3
        self.account = account
        self.artifacts = artifacts
        self.timeout = timeout

    def deploy(self, artifact_identifier: str, constructor_args: Sequence[Any] = ()) -> DeploymentRecord:
        """Deploy an artifact and wait until the contract is live"""
        artifact = self.artifacts.load(artifact_identifier)
        args = tuple(constructor_args)
        logger.info(f"Deploying {artifact.contract_name}...")

        try:
            factory = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
            tx = factory.constructor(*args).build_transaction(transaction_params(self.w3, self.account))
            receipt = send_and_confirm(self.w3, self.account, tx, timeout=self.timeout)
        except Exception as e:
            raise DeploymentError(f"Deployment of {artifact.contract_name} failed: {e}") from e

        if not succeeded(receipt):
            raise DeploymentError(
                f"Deployment of {artifact.contract_name} reverted in transaction "
                f"{Web3.to_hex(receipt['transactionHash'])}"
            )
        if not receipt.get('contractAddress'):
            raise DeploymentError(f"Deployment of {artifact.contract_name} produced no contract address")

        address = Web3.to_checksum_address(receipt['contractAddress'])
        logger.info(f"→ {artifact.contract_name} deployed to {address}")
        return DeploymentRecord(
            artifact_identifier=artifact_identifier,
            address=address,
            constructor_args=args,
            source_path=artifact.fully_qualified_name,
            tx_hash=Web3.to_hex(receipt['transactionHash']),
        )
