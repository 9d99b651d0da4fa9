"""
Genesis header composition.

The ledger contract accepts exactly one genesis header at construction and it
can never be replaced, so composition refuses incomplete blocks instead of
embedding empty values.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from web3 import Web3

from .errors import ConfigurationError

ZERO_HASH = "0x" + "00" * 32

# txRoot of the genesis header is the hash of this placeholder
TX_ROOT_PLACEHOLDER = "0"

_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_QUANTITY_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def is_hash32(value: Any) -> bool:
    return isinstance(value, str) and bool(_HASH_RE.match(value))


@dataclass(frozen=True)
class GenesisHeader:
    """Mirror of the ledger's Header struct"""

    epoch: int
    l2_height: int
    prev_hash: str
    tx_root: str
    block_root: str
    state_root: str
    celestia_height: int
    celestia_data_root: str

    def __post_init__(self):
        if self.l2_height < 0:
            raise ConfigurationError(f"l2Height must be non-negative, got {self.l2_height}")
        for name in ("prev_hash", "tx_root", "block_root", "state_root", "celestia_data_root"):
            value = getattr(self, name)
            if not is_hash32(value):
                raise ConfigurationError(f"Genesis {name} is not a 32-byte hex hash: {value!r}")

    def as_struct(self) -> Tuple:
        """ABI tuple in struct field order, hashes as raw bytes"""
        return (
            self.epoch,
            self.l2_height,
            Web3.to_bytes(hexstr=self.prev_hash),
            Web3.to_bytes(hexstr=self.tx_root),
            Web3.to_bytes(hexstr=self.block_root),
            Web3.to_bytes(hexstr=self.state_root),
            self.celestia_height,
            Web3.to_bytes(hexstr=self.celestia_data_root),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "epoch": self.epoch,
            "l2Height": self.l2_height,
            "prevHash": self.prev_hash,
            "txRoot": self.tx_root,
            "blockRoot": self.block_root,
            "stateRoot": self.state_root,
            "celestiaHeight": self.celestia_height,
            "celestiaDataRoot": self.celestia_data_root,
        }


def compose(block: Mapping[str, Any]) -> GenesisHeader:
    """Map the latest external block onto the genesis header"""
    number = block.get("number")
    block_hash = block.get("hash")
    state_root = block.get("stateRoot")

    if not block_hash:
        raise ConfigurationError("Latest block has no hash, refusing to compose genesis")
    if not state_root:
        raise ConfigurationError("Latest block has no state root, refusing to compose genesis")
    if not isinstance(number, str) or not _QUANTITY_RE.match(number):
        raise ConfigurationError(f"Latest block number is not a hex quantity: {number!r}")

    return GenesisHeader(
        epoch=0,
        l2_height=int(number, 16),
        prev_hash=ZERO_HASH,
        tx_root=Web3.to_hex(Web3.keccak(text=TX_ROOT_PLACEHOLDER)),
        block_root=block_hash,
        state_root=state_root,
        celestia_height=0,
        celestia_data_root=ZERO_HASH,
    )
