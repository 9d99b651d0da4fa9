"""
Sign, send and confirm transactions for a single local account.
"""

import logging
from typing import Any, Dict

from web3 import Web3

logger = logging.getLogger(__name__)


def transaction_params(w3: Web3, account) -> Dict[str, Any]:
    """Base parameters for the next transaction of an account.

    The nonce is read from the pending pool right before each submission;
    submissions are sequential so this serializes per signer.
    """
    return {
        'from': account.address,
        'nonce': w3.eth.get_transaction_count(account.address, 'pending'),
        'chainId': w3.eth.chain_id,
    }


def send_and_confirm(w3: Web3, account, tx: Dict[str, Any], timeout: int = 300):
    """Sign with the local account, broadcast and block until the receipt is available"""
    signed_tx = account.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed_tx.raw_transaction)
    logger.info(f"Transaction sent! Hash: {Web3.to_hex(tx_hash)}")

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    logger.info(f"Transaction confirmed in block {receipt['blockNumber']}")
    return receipt


def succeeded(receipt) -> bool:
    return receipt.get('status') == 1
