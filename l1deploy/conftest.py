"""
Shared fixtures: a minimal Hardhat artifacts tree and sample L2 blocks.
"""

import pytest

from l1deploy.artifacts import ArtifactStore
from l1deploy.testdata import write_artifacts


@pytest.fixture
def artifacts_dir(tmp_path):
    return write_artifacts(str(tmp_path / "artifacts"))


@pytest.fixture
def artifact_store(artifacts_dir):
    return ArtifactStore(artifacts_dir)


@pytest.fixture
def latest_block():
    return {
        "number": "0x64",
        "hash": "0x" + "ab" * 32,
        "stateRoot": "0x" + "cd" * 32,
    }
