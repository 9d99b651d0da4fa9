"""
Hardhat compilation artifacts: ABI, creation bytecode and build info.

Identifiers are either a bare contract name ("Treasury") or fully qualified
("contracts/Treasury.sol:Treasury").
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from eth_abi import encode
from web3 import Web3

from .errors import ConfigurationError


@dataclass
class ContractArtifact:
    contract_name: str
    source_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    path: str = field(repr=False, default="")

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.source_name}:{self.contract_name}"


def abi_type(param: Dict[str, Any]) -> str:
    """Canonical ABI type of a parameter, with structs collapsed to tuples"""
    type_str = param["type"]
    if type_str.startswith("tuple"):
        inner = ",".join(abi_type(component) for component in param.get("components", []))
        return f"({inner}){type_str[len('tuple'):]}"
    return type_str


def constructor_types(abi: Sequence[Dict[str, Any]]) -> List[str]:
    constructor = next((item for item in abi if item.get("type") == "constructor"), None)
    if constructor is None:
        return []
    return [abi_type(param) for param in constructor.get("inputs", [])]


def encode_constructor_args(abi: Sequence[Dict[str, Any]], args: Sequence[Any]) -> bytes:
    """ABI-encoded constructor arguments, as appended to creation bytecode"""
    types = constructor_types(abi)
    if len(types) != len(args):
        raise ConfigurationError(f"Constructor takes {len(types)} arguments, got {len(args)}")
    if not types:
        return b""
    return encode(types, list(args))


def bind_contract(w3: Web3, address: str, abi: Sequence[Dict[str, Any]]):
    """Typed client for an already-deployed contract"""
    return w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)


class ArtifactStore:
    """Resolves and caches artifacts under a Hardhat artifacts directory"""

    def __init__(self, root: str):
        self.root = root
        self._cache: Dict[str, ContractArtifact] = {}

    def _resolve(self, identifier: str) -> str:
        if ":" in identifier:
            source_name, contract_name = identifier.rsplit(":", 1)
            path = os.path.join(self.root, source_name, f"{contract_name}.json")
            if not os.path.isfile(path):
                raise ConfigurationError(f"Artifact {identifier} not found at {path}")
            return path

        matches = []
        build_info_dir = os.path.join(self.root, "build-info")
        for dirpath, _, filenames in os.walk(self.root):
            if dirpath.startswith(build_info_dir):
                continue
            if f"{identifier}.json" in filenames:
                matches.append(os.path.join(dirpath, f"{identifier}.json"))

        if not matches:
            raise ConfigurationError(f"Artifact {identifier} not found under {self.root}")
        if len(matches) > 1:
            raise ConfigurationError(
                f"Artifact name {identifier} is ambiguous, use a fully qualified name: {sorted(matches)}"
            )
        return matches[0]

    def load(self, identifier: str) -> ContractArtifact:
        if identifier in self._cache:
            return self._cache[identifier]

        path = self._resolve(identifier)
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            artifact = ContractArtifact(
                contract_name=data["contractName"],
                source_name=data["sourceName"],
                abi=data["abi"],
                bytecode=data["bytecode"],
                path=path,
            )
        except (OSError, ValueError, KeyError) as e:
            raise ConfigurationError(f"Could not read artifact {identifier} from {path}: {e}") from e

        if not artifact.bytecode or artifact.bytecode == "0x":
            raise ConfigurationError(f"Artifact {identifier} has no creation bytecode")

        self._cache[identifier] = artifact
        return artifact

    def load_build_info(self, artifact: ContractArtifact) -> Dict[str, Any]:
        """Build info (solc version and standard JSON input) that produced an artifact"""
        dbg_path = os.path.splitext(artifact.path)[0] + ".dbg.json"
        try:
            with open(dbg_path, 'r') as f:
                build_info_ref = json.load(f)["buildInfo"]
            build_info_path = os.path.normpath(os.path.join(os.path.dirname(dbg_path), build_info_ref))
            with open(build_info_path, 'r') as f:
                return json.load(f)
        except (OSError, ValueError, KeyError) as e:
            raise ConfigurationError(
                f"Could not read build info for {artifact.fully_qualified_name}: {e}"
            ) from e

    def bind(self, w3: Web3, identifier: str, address: str):
        """Typed client for a deployed instance of the given artifact"""
        return bind_contract(w3, address, self.load(identifier).abi)

