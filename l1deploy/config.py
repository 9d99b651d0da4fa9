"""
Deployment configuration loaded from the environment (and a local .env file).
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv
from web3 import Web3

from .errors import ConfigurationError

DEFAULT_DA_ORACLE_ADDRESS = "0x3a5cbB6EF4756DA0b3f6DAE7aB6430fD8c46d247"
DEFAULT_ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class DeployConfig:
    """Everything the pipeline needs, passed explicitly to each component"""

    rpc_url: str
    l2_rpc_url: str
    owner_private_key: str
    publisher_private_key: str
    network_name: str = "sepolia"
    da_oracle_address: str = DEFAULT_DA_ORACLE_ADDRESS
    artifacts_dir: str = "artifacts"
    tx_timeout: int = 300

    # Verification
    verify_contracts: bool = True
    etherscan_api_url: str = DEFAULT_ETHERSCAN_API_URL
    etherscan_api_key: Optional[str] = None
    verify_delay: int = 60

    manifest_path: Optional[str] = "deployment.json"

    # Alerts (optional)
    slack_webhook: Optional[str] = None
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    notification_email: Optional[str] = None

    def __post_init__(self):
        if not Web3.is_address(self.da_oracle_address):
            raise ConfigurationError(f"DA_ORACLE_ADDRESS is not a valid address: {self.da_oracle_address}")
        self.da_oracle_address = Web3.to_checksum_address(self.da_oracle_address)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "DeployConfig":
        """Build a config from environment variables, loading .env first by default"""
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        def required(name: str) -> str:
            value = environ.get(name)
            if not value:
                raise ConfigurationError(f"{name} not found in environment")
            return value

        def integer(name: str, default: int) -> int:
            raw = environ.get(name)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer, got {raw!r}")

        manifest_path = environ.get("DEPLOYMENT_MANIFEST", "deployment.json")

        return cls(
            rpc_url=required("RPC_URL"),
            l2_rpc_url=required("PEGASUS_PROVIDER_URL"),
            owner_private_key=required("OWNER_PRIVATE_KEY"),
            publisher_private_key=required("PUBLISHER_PRIVATE_KEY"),
            network_name=environ.get("NETWORK_NAME", "sepolia"),
            da_oracle_address=environ.get("DA_ORACLE_ADDRESS", DEFAULT_DA_ORACLE_ADDRESS),
            artifacts_dir=environ.get("ARTIFACTS_DIR", "artifacts"),
            tx_timeout=integer("TX_TIMEOUT", 300),
            verify_contracts=environ.get("VERIFY_CONTRACTS", "true").strip().lower() in TRUE_VALUES,
            etherscan_api_url=environ.get("ETHERSCAN_API_URL", DEFAULT_ETHERSCAN_API_URL),
            etherscan_api_key=environ.get("ETHERSCAN_API_KEY") or None,
            verify_delay=integer("VERIFY_DELAY", 60),
            manifest_path=manifest_path or None,
            slack_webhook=environ.get("SLACK_WEBHOOK") or None,
            smtp_server=environ.get("SMTP_SERVER", "smtp.gmail.com"),
            smtp_port=integer("SMTP_PORT", 587),
            smtp_username=environ.get("SMTP_USERNAME") or None,
            smtp_password=environ.get("SMTP_PASSWORD") or None,
            notification_email=environ.get("NOTIFICATION_EMAIL") or None,
        )
