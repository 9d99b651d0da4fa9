"""
Post-deploy setter calls that let deployed contracts reference each other.

Links are independent transactions. A failed link does not undo earlier ones;
the operator sees the partially wired state in the stage report.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from web3 import Web3

from .errors import WiringError
from .transactions import send_and_confirm, succeeded, transaction_params

logger = logging.getLogger(__name__)


@dataclass
class LinkRecord:
    contract_address: str
    setter: str
    target: str
    tx_hash: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "contract": self.contract_address,
            "setter": self.setter,
            "target": self.target,
            "txHash": self.tx_hash,
        }


class WiringCoordinator:
    def __init__(self, w3: Web3, account, timeout: int = 300):
        self.w3 = w3
        self.account = account
        self.timeout = timeout
        self.links: List[LinkRecord] = []

    def link(self, source_contract, setter_name: str, target_address: str) -> LinkRecord:
        """Call source_contract.<setter_name>(target_address) and wait for it to confirm"""
        description = f"{setter_name}({target_address}) on {source_contract.address}"
        try:
            setter = getattr(source_contract.functions, setter_name)
            tx = setter(target_address).build_transaction(transaction_params(self.w3, self.account))
            receipt = send_and_confirm(self.w3, self.account, tx, timeout=self.timeout)
        except Exception as e:
            raise WiringError(f"{description} failed: {e}") from e

        if not succeeded(receipt):
            raise WiringError(f"{description} reverted in transaction {Web3.to_hex(receipt['transactionHash'])}")

        record = LinkRecord(
            contract_address=source_contract.address,
            setter=setter_name,
            target=target_address,
            tx_hash=Web3.to_hex(receipt['transactionHash']),
        )
        self.links.append(record)
        logger.info(f"→ → {setter_name}() set to {target_address}")
        return record
