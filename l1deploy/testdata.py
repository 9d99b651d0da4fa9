"""
Sample contract artifacts, accounts and records shared by the test modules.
"""

import json
import os

from l1deploy.deployer import DeploymentRecord

BYTECODE = "0x6080604052348015600f57600080fd5b50"

OWNER = "0x1111111111111111111111111111111111111111"
PUBLISHER = "0x2222222222222222222222222222222222222222"

HEADER_COMPONENTS = [
    {"name": "epoch", "type": "uint64"},
    {"name": "l2Height", "type": "uint64"},
    {"name": "prevHash", "type": "bytes32"},
    {"name": "txRoot", "type": "bytes32"},
    {"name": "blockRoot", "type": "bytes32"},
    {"name": "stateRoot", "type": "bytes32"},
    {"name": "celestiaHeight", "type": "uint64"},
    {"name": "celestiaDataRoot", "type": "bytes32"},
]


def _setter(name):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": "_address", "type": "address"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    }


CANONICAL_STATE_CHAIN_ABI = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "_publisher", "type": "address"},
            {"name": "_header", "type": "tuple", "components": HEADER_COMPONENTS},
        ],
        "stateMutability": "nonpayable",
    },
    _setter("setChallengeContract"),
]

TREASURY_ABI = [
    {"type": "function", "name": "owner", "inputs": [], "outputs": [{"name": "", "type": "address"}],
     "stateMutability": "view"},
]

CHALLENGE_ABI = [
    {
        "type": "function",
        "name": "initialize",
        "inputs": [
            {"name": "_treasury", "type": "address"},
            {"name": "_chain", "type": "address"},
            {"name": "_daOracle", "type": "address"},
            {"name": "_mipsChallenge", "type": "address"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    _setter("setDefender"),
]

CORE_PROXY_ABI = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "_logic", "type": "address"},
            {"name": "_data", "type": "bytes"},
        ],
        "stateMutability": "payable",
    },
]

CONTRACTS = {
    "contracts/CanonicalStateChain.sol:CanonicalStateChain": CANONICAL_STATE_CHAIN_ABI,
    "contracts/Treasury.sol:Treasury": TREASURY_ABI,
    "contracts/challenge/Challenge.sol:Challenge": CHALLENGE_ABI,
    "contracts/proxy/CoreProxy.sol:CoreProxy": CORE_PROXY_ABI,
}

BUILD_INFO = {
    "_format": "hh-sol-build-info-1",
    "solcVersion": "0.8.22",
    "solcLongVersion": "0.8.22+commit.4fc1097e",
    "input": {"language": "Solidity", "sources": {}, "settings": {"optimizer": {"enabled": True}}},
}


def write_artifacts(root):
    build_info_dir = os.path.join(root, "build-info")
    os.makedirs(build_info_dir, exist_ok=True)
    build_info_path = os.path.join(build_info_dir, "0f1e2d.json")
    with open(build_info_path, "w") as f:
        json.dump(BUILD_INFO, f)

    for identifier, abi in CONTRACTS.items():
        source_name, contract_name = identifier.split(":")
        directory = os.path.join(root, source_name)
        os.makedirs(directory, exist_ok=True)
        with open(os.path.join(directory, f"{contract_name}.json"), "w") as f:
            json.dump({
                "_format": "hh-sol-artifact-1",
                "contractName": contract_name,
                "sourceName": source_name,
                "abi": abi,
                "bytecode": BYTECODE,
                "deployedBytecode": BYTECODE,
            }, f)
        with open(os.path.join(directory, f"{contract_name}.dbg.json"), "w") as f:
            json.dump({
                "_format": "hh-sol-dbg-1",
                "buildInfo": os.path.relpath(build_info_path, directory),
            }, f)
    return root


def make_record(identifier, address, args=(), tx_hash="0x" + "99" * 32):
    return DeploymentRecord(
        artifact_identifier=identifier,
        address=address,
        constructor_args=tuple(args),
        source_path=identifier,
        tx_hash=tx_hash,
    )
