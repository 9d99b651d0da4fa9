"""
Settlement Layer Contracts
==========================

Contracts deployed by the pipeline, by fully-qualified artifact name:
- CanonicalStateChain: append-only ledger of checkpointed L2 headers
- Treasury: funds disbursed and collected by the system
- Challenge: dispute module, deployed behind CoreProxy
- CoreProxy: ERC-1967 proxy that runs the implementation's initializer in its constructor
"""

CANONICAL_STATE_CHAIN = "contracts/CanonicalStateChain.sol:CanonicalStateChain"
TREASURY = "contracts/Treasury.sol:Treasury"
CHALLENGE = "contracts/challenge/Challenge.sol:Challenge"
CORE_PROXY = "contracts/proxy/CoreProxy.sol:CoreProxy"

CHALLENGE_INITIALIZER = "initialize"
SET_DEFENDER = "setDefender"
SET_CHALLENGE_CONTRACT = "setChallengeContract"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

__all__ = [
    "CANONICAL_STATE_CHAIN",
    "TREASURY",
    "CHALLENGE",
    "CORE_PROXY",
    "CHALLENGE_INITIALIZER",
    "SET_DEFENDER",
    "SET_CHALLENGE_CONTRACT",
    "ZERO_ADDRESS",
]
