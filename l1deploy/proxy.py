"""
Deploy an implementation contract behind an initializing proxy.

The proxy constructor stores the implementation address and delegatecalls the
encoded initializer in the same transaction, so a proxy never exists
uninitialized.
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from web3 import Web3

from .artifacts import bind_contract
from .contracts import CORE_PROXY
from .deployer import ContractDeployer, DeploymentRecord
from .errors import DeploymentError

logger = logging.getLogger(__name__)

# bytes32(uint256(keccak256("eip1967.proxy.implementation")) - 1)
IMPLEMENTATION_SLOT = 0x360894A13BA1A3210667C828492DB98DCA3E2076CC3735A920A3CA505D382BBC


@dataclass
class ProxyDeployment:
    proxy: DeploymentRecord
    implementation: DeploymentRecord
    init_data: bytes

    @property
    def proxy_address(self) -> str:
        return self.proxy.address

    @property
    def implementation_address(self) -> str:
        return self.implementation.address


class ProxyInitializer:
    def __init__(self, deployer: ContractDeployer, proxy_artifact: str = CORE_PROXY,
                 check_implementation_slot: bool = True):
        self.deployer = deployer
        self.proxy_artifact = proxy_artifact
        self.check_implementation_slot = check_implementation_slot

    def encode_init_call(self, implementation: DeploymentRecord, init_selector: str,
                         init_args: Sequence[Any]) -> bytes:
        """Calldata for the implementation's initializer"""
        abi = self.deployer.artifacts.load(implementation.artifact_identifier).abi
        client = bind_contract(self.deployer.w3, implementation.address, abi)
        try:
            encoded = client.encode_abi(init_selector, args=list(init_args))
        except Exception as e:
            raise DeploymentError(f"Could not encode {init_selector} call: {e}") from e
        return Web3.to_bytes(hexstr=encoded)

    def read_implementation(self, proxy_address: str) -> str:
        try:
            raw = self.deployer.w3.eth.get_storage_at(proxy_address, IMPLEMENTATION_SLOT)
        except Exception as e:
            raise DeploymentError(f"Could not read implementation slot of proxy {proxy_address}: {e}") from e
        return Web3.to_checksum_address(Web3.to_hex(bytes(raw)[-20:]))

    def deploy_behind_proxy(self, implementation_artifact: str, init_selector: str,
                            init_args: Sequence[Any]) -> ProxyDeployment:
        implementation = self.deployer.deploy(implementation_artifact)
        init_data = self.encode_init_call(implementation, init_selector, init_args)

        proxy = self.deployer.deploy(self.proxy_artifact, (implementation.address, init_data))

        if self.check_implementation_slot:
            recorded = self.read_implementation(proxy.address)
            if recorded != implementation.address:
                raise DeploymentError(
                    f"Proxy {proxy.address} points at {recorded}, expected implementation {implementation.address}"
                )

        logger.info(f"→ Proxy for {implementation_artifact} deployed to {proxy.address}")
        logger.info(f"→ Implementation deployed to {implementation.address}")
        return ProxyDeployment(proxy=proxy, implementation=implementation, init_data=init_data)
