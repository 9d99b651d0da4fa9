"""
The fixed L1 deployment sequence.

Init -> ChainStateFetched -> GenesisComposed -> LedgerDeployed ->
TreasuryDeployed -> ChallengeProxyDeployed -> Wired -> Verified

Every stage consumes what the previous one committed, so stages run strictly
in order. A fatal error stops the run where it happened; nothing already on
chain is rolled back.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Dict, List, Optional

from eth_account import Account
from web3 import Web3

from .artifacts import ArtifactStore
from .chain_state import ChainStateReader, connect
from .config import DeployConfig
from .contracts import (
    CANONICAL_STATE_CHAIN,
    CHALLENGE,
    CHALLENGE_INITIALIZER,
    SET_CHALLENGE_CONTRACT,
    SET_DEFENDER,
    TREASURY,
    ZERO_ADDRESS,
)
from .deployer import ContractDeployer, DeploymentRecord
from .errors import DeployError
from .genesis import GenesisHeader, compose
from .manifest import FAILED, OK, SKIPPED, UNVERIFIED, DeploymentReport
from .proxy import ProxyDeployment, ProxyInitializer
from .verify import VERIFIED, VerificationClient
from .wiring import WiringCoordinator

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    INIT = "init"
    CHAIN_STATE_FETCHED = "chain_state_fetched"
    GENESIS_COMPOSED = "genesis_composed"
    LEDGER_DEPLOYED = "ledger_deployed"
    TREASURY_DEPLOYED = "treasury_deployed"
    CHALLENGE_PROXY_DEPLOYED = "challenge_proxy_deployed"
    WIRED = "wired"
    VERIFIED = "verified"


# Stages in execution order, named after the state each one reaches
STAGES = [state for state in PipelineState if state is not PipelineState.INIT]


class DeploymentPipeline:
    def __init__(self, w3: Web3, owner, publisher, reader: ChainStateReader,
                 deployer: ContractDeployer, proxy_initializer: ProxyInitializer,
                 wiring: WiringCoordinator, verifier: Optional[VerificationClient] = None,
                 da_oracle_address: str = "", network_name: str = "", chain_id: Optional[int] = None):
        self.w3 = w3
        self.owner = owner
        self.publisher = publisher
        self.reader = reader
        self.deployer = deployer
        self.proxy_initializer = proxy_initializer
        self.wiring = wiring
        self.verifier = verifier
        self.da_oracle_address = da_oracle_address

        self.state = PipelineState.INIT
        self.report = DeploymentReport(network=network_name, chain_id=chain_id)
        self.records: List[DeploymentRecord] = []

        self.genesis: Optional[GenesisHeader] = None
        self.ledger: Optional[DeploymentRecord] = None
        self.treasury: Optional[DeploymentRecord] = None
        self.challenge: Optional[ProxyDeployment] = None

    @classmethod
    def from_config(cls, config: DeployConfig) -> "DeploymentPipeline":
        """Wire up every component from configuration"""
        w3 = connect(config.rpc_url)
        chain_id = ChainStateReader(w3).fetch_chain_id()
        reader = ChainStateReader(connect(config.l2_rpc_url))

        owner = Account.from_key(config.owner_private_key)
        publisher = Account.from_key(config.publisher_private_key)
        artifacts = ArtifactStore(config.artifacts_dir)

        deployer = ContractDeployer(w3, owner, artifacts, timeout=config.tx_timeout)
        verifier = None
        if not config.verify_contracts:
            logger.info("Contract verification disabled")
        elif not config.etherscan_api_key:
            logger.warning("ETHERSCAN_API_KEY not set, contract verification will be skipped")
        else:
            verifier = VerificationClient(
                api_url=config.etherscan_api_url,
                api_key=config.etherscan_api_key,
                artifacts=artifacts,
                w3=w3,
                chain_id=chain_id,
                settle_delay=config.verify_delay,
            )

        return cls(
            w3=w3,
            owner=owner,
            publisher=publisher,
            reader=reader,
            deployer=deployer,
            proxy_initializer=ProxyInitializer(deployer),
            wiring=WiringCoordinator(w3, owner, timeout=config.tx_timeout),
            verifier=verifier,
            da_oracle_address=config.da_oracle_address,
            network_name=config.network_name,
            chain_id=chain_id,
        )

    @property
    def artifacts(self) -> ArtifactStore:
        return self.deployer.artifacts

    @contextmanager
    def _stage(self, state: PipelineState):
        try:
            yield
        except DeployError as e:
            self.report.record(state.value, FAILED, detail=str(e))
            raise
        self.state = state

    def _skip_remaining(self):
        recorded = {result.stage for result in self.report.stages}
        for state in STAGES:
            if state.value not in recorded:
                self.report.record(state.value, SKIPPED)

    def _committed(self, name: str, record: DeploymentRecord):
        self.records.append(record)
        self.report.contracts[name] = record.as_dict()

    def run(self) -> DeploymentReport:
        owner_address = self.owner.address
        publisher_address = self.publisher.address
        self.report.roles = {"owner": owner_address, "publisher": publisher_address}

        logger.info(f"Network name: {self.report.network}")
        logger.info(f"Network chain id: {self.report.chain_id}")
        logger.info(f"Owner address is set to: {owner_address}")
        logger.info(f"Publisher address is set to: {publisher_address}")
        logger.info(f"DAOracle address set to: {self.da_oracle_address}")

        try:
            self._deploy_and_wire(publisher_address)
        except DeployError:
            self._skip_remaining()
            raise

        self._verify()
        return self.report

    def _deploy_and_wire(self, publisher_address: str):
        with self._stage(PipelineState.CHAIN_STATE_FETCHED):
            block = self.reader.fetch_latest_block()
        self.report.record(PipelineState.CHAIN_STATE_FETCHED.value, OK)

        with self._stage(PipelineState.GENESIS_COMPOSED):
            self.genesis = compose(block)
        self.report.genesis = self.genesis.as_dict()
        self.report.record(PipelineState.GENESIS_COMPOSED.value, OK,
                           detail=f"l2Height={self.genesis.l2_height}")

        # The ledger's admin is always the publisher, never the owner
        with self._stage(PipelineState.LEDGER_DEPLOYED):
            self.ledger = self.deployer.deploy(
                CANONICAL_STATE_CHAIN, (publisher_address, self.genesis.as_struct())
            )
        self._committed("CanonicalStateChain", self.ledger)
        self.report.record(PipelineState.LEDGER_DEPLOYED.value, OK,
                           {"CanonicalStateChain": self.ledger.address})

        with self._stage(PipelineState.TREASURY_DEPLOYED):
            self.treasury = self.deployer.deploy(TREASURY)
        self._committed("Treasury", self.treasury)
        self.report.record(PipelineState.TREASURY_DEPLOYED.value, OK, {"Treasury": self.treasury.address})

        with self._stage(PipelineState.CHALLENGE_PROXY_DEPLOYED):
            self.challenge = self.proxy_initializer.deploy_behind_proxy(
                CHALLENGE,
                CHALLENGE_INITIALIZER,
                (self.treasury.address, self.ledger.address, self.da_oracle_address, ZERO_ADDRESS),
            )
        self._committed("ChallengeImplementation", self.challenge.implementation)
        self._committed("Challenge", self.challenge.proxy)
        self.report.record(PipelineState.CHALLENGE_PROXY_DEPLOYED.value, OK, {
            "Challenge": self.challenge.proxy_address,
            "ChallengeImplementation": self.challenge.implementation_address,
        })

        with self._stage(PipelineState.WIRED):
            try:
                challenge = self.artifacts.bind(self.w3, CHALLENGE, self.challenge.proxy_address)
                self.wiring.link(challenge, SET_DEFENDER, publisher_address)

                ledger = self.artifacts.bind(self.w3, CANONICAL_STATE_CHAIN, self.ledger.address)
                self.wiring.link(ledger, SET_CHALLENGE_CONTRACT, self.challenge.proxy_address)
            finally:
                self.report.links = [link.as_dict() for link in self.wiring.links]
        self.report.record(PipelineState.WIRED.value, OK, detail=f"{len(self.wiring.links)} links")
        logger.info("All Contracts deployed successfully!")

    def _verify(self):
        if self.verifier is None:
            self.report.record(PipelineState.VERIFIED.value, SKIPPED, detail="verification not configured")
            return

        outcomes: Dict[str, str] = self.verifier.verify_all(self.records)
        self.report.verification = outcomes
        if outcomes and all(outcome == VERIFIED for outcome in outcomes.values()):
            self.state = PipelineState.VERIFIED
            self.report.record(PipelineState.VERIFIED.value, OK)
        else:
            failed = [address for address, outcome in outcomes.items() if outcome != VERIFIED]
            self.report.record(PipelineState.VERIFIED.value, UNVERIFIED,
                               detail=f"not verified: {', '.join(failed)}")
