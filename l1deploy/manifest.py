"""
Per-stage results of a pipeline run, the log reporter and the JSON manifest writer.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

OK = "ok"
FAILED = "failed"
SKIPPED = "skipped"
UNVERIFIED = "unverified"


@dataclass
class StageResult:
    stage: str
    status: str
    addresses: Dict[str, str] = field(default_factory=dict)
    detail: str = ""


@dataclass
class DeploymentReport:
    network: str = ""
    chain_id: Optional[int] = None
    roles: Dict[str, str] = field(default_factory=dict)
    genesis: Optional[Dict[str, Any]] = None
    contracts: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    links: List[Dict[str, Any]] = field(default_factory=list)
    verification: Dict[str, str] = field(default_factory=dict)
    stages: List[StageResult] = field(default_factory=list)

    def record(self, stage: str, status: str, addresses: Optional[Dict[str, str]] = None,
               detail: str = "") -> StageResult:
        result = StageResult(stage=stage, status=status, addresses=dict(addresses or {}), detail=detail)
        self.stages.append(result)
        log_stage(result)
        return result

    @property
    def completed_stages(self) -> List[str]:
        return [result.stage for result in self.stages if result.status == OK]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "chainId": self.chain_id,
            "generatedAt": datetime.now().isoformat(),
            "roles": self.roles,
            "genesis": self.genesis,
            "contracts": self.contracts,
            "links": self.links,
            "verification": self.verification,
            "stages": [asdict(result) for result in self.stages],
        }


def log_stage(result: StageResult):
    """Human-readable progress line for a stage"""
    addresses = ", ".join(f"{name}={address}" for name, address in result.addresses.items())
    message = f"[{result.stage}] {result.status}"
    if addresses:
        message += f" ({addresses})"
    if result.detail:
        message += f": {result.detail}"

    if result.status == FAILED:
        logger.error(message)
    elif result.status == UNVERIFIED:
        logger.warning(message)
    else:
        logger.info(message)


def write_manifest(report: DeploymentReport, path: str) -> str:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(report.as_dict(), f, indent=2)
    logger.info(f"Deployment manifest written to {path}")
    return path
