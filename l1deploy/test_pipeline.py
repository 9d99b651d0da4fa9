#!/usr/bin/env python3
"""
Tests for the deployment pipeline sequence
"""

from unittest.mock import MagicMock

import pytest
from web3 import Web3

from l1deploy.contracts import (
    CANONICAL_STATE_CHAIN,
    CHALLENGE,
    CHALLENGE_INITIALIZER,
    CORE_PROXY,
    SET_CHALLENGE_CONTRACT,
    SET_DEFENDER,
    TREASURY,
    ZERO_ADDRESS,
)
from l1deploy.errors import ConfigurationError, DeploymentError, ProviderError, WiringError
from l1deploy.manifest import FAILED, OK, SKIPPED, UNVERIFIED
from l1deploy.pipeline import DeploymentPipeline, PipelineState
from l1deploy.proxy import ProxyDeployment
from l1deploy.testdata import OWNER, PUBLISHER, make_record
from l1deploy.verify import VERIFIED

LEDGER_ADDRESS = Web3.to_checksum_address("0x" + "4d" * 20)
TREASURY_ADDRESS = Web3.to_checksum_address("0x" + "3c" * 20)
IMPLEMENTATION = Web3.to_checksum_address("0x" + "1a" * 20)
PROXY_ADDRESS = Web3.to_checksum_address("0x" + "2b" * 20)
ORACLE = "0x3a5cbB6EF4756DA0b3f6DAE7aB6430fD8c46d247"

ADDRESSES = {CANONICAL_STATE_CHAIN: LEDGER_ADDRESS, TREASURY: TREASURY_ADDRESS}


def account(address):
    acct = MagicMock()
    acct.address = address
    return acct


def make_pipeline(latest_block, verifier=None):
    reader = MagicMock()
    reader.fetch_latest_block.return_value = latest_block

    deployer = MagicMock()
    deployer.deploy.side_effect = lambda identifier, args=(): make_record(identifier, ADDRESSES[identifier], args)
    deployer.artifacts.bind.side_effect = lambda w3, identifier, address: MagicMock(address=address, name=identifier)

    proxy_initializer = MagicMock()
    proxy_initializer.deploy_behind_proxy.return_value = ProxyDeployment(
        proxy=make_record(CORE_PROXY, PROXY_ADDRESS, (IMPLEMENTATION, b"\x01")),
        implementation=make_record(CHALLENGE, IMPLEMENTATION),
        init_data=b"\x01",
    )

    wiring = MagicMock()
    wiring.links = []

    return DeploymentPipeline(
        w3=MagicMock(),
        owner=account(OWNER),
        publisher=account(PUBLISHER),
        reader=reader,
        deployer=deployer,
        proxy_initializer=proxy_initializer,
        wiring=wiring,
        verifier=verifier,
        da_oracle_address=ORACLE,
        network_name="sepolia",
        chain_id=11155111,
    )


def statuses(report):
    return {result.stage: result.status for result in report.stages}


class TestDeploymentPipeline:
    """Test class for the full happy path"""

    def test_ledger_constructed_with_publisher(self, latest_block):
        """The ledger admin is the publisher, never the owner"""
        pipeline = make_pipeline(latest_block)
        pipeline.run()

        identifier, args = pipeline.deployer.deploy.call_args_list[0].args
        assert identifier == CANONICAL_STATE_CHAIN
        assert args[0] == PUBLISHER
        assert OWNER not in args

    def test_ledger_receives_genesis_struct(self, latest_block):
        """The genesis header derived from the L2 tip is the ledger's second argument"""
        pipeline = make_pipeline(latest_block)
        pipeline.run()

        _, args = pipeline.deployer.deploy.call_args_list[0].args
        assert args[1] == pipeline.genesis.as_struct()
        assert args[1][1] == 100

    def test_deploy_order(self, latest_block):
        """Ledger, then treasury, then the challenge proxy"""
        pipeline = make_pipeline(latest_block)
        pipeline.run()

        assert [call.args[0] for call in pipeline.deployer.deploy.call_args_list] == [CANONICAL_STATE_CHAIN, TREASURY]
        pipeline.proxy_initializer.deploy_behind_proxy.assert_called_once_with(
            CHALLENGE, CHALLENGE_INITIALIZER, (TREASURY_ADDRESS, LEDGER_ADDRESS, ORACLE, ZERO_ADDRESS)
        )

    def test_wiring_order(self, latest_block):
        """setDefender(publisher) on the proxy always precedes setChallengeContract(proxy) on the ledger"""
        pipeline = make_pipeline(latest_block)
        pipeline.run()

        calls = pipeline.wiring.link.call_args_list
        assert len(calls) == 2
        first, second = calls[0].args, calls[1].args
        assert (first[0].address, first[1], first[2]) == (PROXY_ADDRESS, SET_DEFENDER, PUBLISHER)
        assert (second[0].address, second[1], second[2]) == (LEDGER_ADDRESS, SET_CHALLENGE_CONTRACT, PROXY_ADDRESS)

    def test_typed_clients_bound_to_deployed_addresses(self, latest_block):
        """Wiring uses clients bound to the challenge proxy and ledger"""
        pipeline = make_pipeline(latest_block)
        pipeline.run()

        binds = [call.args[1:] for call in pipeline.deployer.artifacts.bind.call_args_list]
        assert binds == [(CHALLENGE, PROXY_ADDRESS), (CANONICAL_STATE_CHAIN, LEDGER_ADDRESS)]

    def test_report_on_success(self, latest_block):
        """Every stage is reported and addresses are collected"""
        pipeline = make_pipeline(latest_block)
        report = pipeline.run()

        assert pipeline.state == PipelineState.WIRED
        assert statuses(report) == {
            "chain_state_fetched": OK,
            "genesis_composed": OK,
            "ledger_deployed": OK,
            "treasury_deployed": OK,
            "challenge_proxy_deployed": OK,
            "wired": OK,
            "verified": SKIPPED,
        }
        assert report.contracts["Challenge"]["address"] == PROXY_ADDRESS
        assert report.contracts["ChallengeImplementation"]["address"] == IMPLEMENTATION
        assert report.genesis["l2Height"] == 100
        assert report.roles == {"owner": OWNER, "publisher": PUBLISHER}

    def test_verification_covers_every_contract(self, latest_block):
        """All four deployed contracts are handed to the verifier, once"""
        verifier = MagicMock()
        verifier.verify_all.side_effect = lambda records: {record.address: VERIFIED for record in records}
        pipeline = make_pipeline(latest_block, verifier=verifier)
        report = pipeline.run()

        records = verifier.verify_all.call_args.args[0]
        assert [record.address for record in records] == [
            LEDGER_ADDRESS, TREASURY_ADDRESS, IMPLEMENTATION, PROXY_ADDRESS,
        ]
        assert pipeline.state == PipelineState.VERIFIED
        assert statuses(report)["verified"] == OK

    def test_verification_failure_is_advisory(self, latest_block):
        """Failed verification leaves the run wired and successful"""
        verifier = MagicMock()
        verifier.verify_all.return_value = {LEDGER_ADDRESS: VERIFIED, TREASURY_ADDRESS: "failed"}
        pipeline = make_pipeline(latest_block, verifier=verifier)
        report = pipeline.run()

        assert pipeline.state == PipelineState.WIRED
        assert statuses(report)["verified"] == UNVERIFIED
        assert report.verification[TREASURY_ADDRESS] == "failed"


class TestPipelineFailures:
    """Test class for fatal failures and short-circuiting"""

    def test_provider_failure_before_any_deployment(self, latest_block):
        """No deployment happens without genesis data"""
        pipeline = make_pipeline(latest_block)
        pipeline.reader.fetch_latest_block.side_effect = ProviderError("unreachable")

        with pytest.raises(ProviderError):
            pipeline.run()
        pipeline.deployer.deploy.assert_not_called()
        assert pipeline.state == PipelineState.INIT

    def test_missing_state_root_blocks_deployment(self, latest_block):
        """A block without state root fails composition and nothing is deployed"""
        latest_block["stateRoot"] = None
        pipeline = make_pipeline(latest_block)

        with pytest.raises(ConfigurationError):
            pipeline.run()
        pipeline.deployer.deploy.assert_not_called()
        assert statuses(pipeline.report)["genesis_composed"] == FAILED
        assert pipeline.state == PipelineState.CHAIN_STATE_FETCHED

    def test_ledger_failure_short_circuits(self, latest_block):
        """If the ledger fails, no treasury or challenge deployment is issued"""
        pipeline = make_pipeline(latest_block)
        pipeline.deployer.deploy.side_effect = DeploymentError("ledger reverted")

        with pytest.raises(DeploymentError, match="ledger reverted"):
            pipeline.run()
        assert pipeline.deployer.deploy.call_count == 1
        pipeline.proxy_initializer.deploy_behind_proxy.assert_not_called()
        pipeline.wiring.link.assert_not_called()
        assert statuses(pipeline.report)["treasury_deployed"] == SKIPPED

    def test_proxy_revert_aborts_before_wiring(self, latest_block):
        """A reverted challenge proxy stops the run with the ledger unwired"""
        pipeline = make_pipeline(latest_block)
        pipeline.proxy_initializer.deploy_behind_proxy.side_effect = DeploymentError("proxy reverted")

        with pytest.raises(DeploymentError):
            pipeline.run()

        pipeline.wiring.link.assert_not_called()
        assert pipeline.state == PipelineState.TREASURY_DEPLOYED
        assert set(pipeline.report.contracts) == {"CanonicalStateChain", "Treasury"}
        assert statuses(pipeline.report) == {
            "chain_state_fetched": OK,
            "genesis_composed": OK,
            "ledger_deployed": OK,
            "treasury_deployed": OK,
            "challenge_proxy_deployed": FAILED,
            "wired": SKIPPED,
            "verified": SKIPPED,
        }

    def test_partial_wiring_reported(self, latest_block):
        """A failed second link leaves the first one in the report"""
        pipeline = make_pipeline(latest_block)
        defender_link = MagicMock()
        defender_link.as_dict.return_value = {"setter": SET_DEFENDER}

        def link(contract, setter, target):
            if setter == SET_DEFENDER:
                pipeline.wiring.links.append(defender_link)
                return defender_link
            raise WiringError("setChallengeContract reverted")

        pipeline.wiring.link.side_effect = link

        with pytest.raises(WiringError):
            pipeline.run()
        assert pipeline.report.links == [{"setter": SET_DEFENDER}]
        assert statuses(pipeline.report)["wired"] == FAILED

    def test_verifier_not_called_after_fatal_error(self, latest_block):
        """Verification only runs once wiring has committed"""
        verifier = MagicMock()
        pipeline = make_pipeline(latest_block, verifier=verifier)
        pipeline.deployer.deploy.side_effect = DeploymentError("boom")

        with pytest.raises(DeploymentError):
            pipeline.run()
        verifier.verify_all.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__])
