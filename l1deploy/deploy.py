#!/usr/bin/env python3
"""
Deploy and wire the L1 settlement contracts.

Configuration comes from the environment (and a local .env file); the command
takes no flags. Exits 0 when every contract is deployed and wired, 1 otherwise.
Verification results never affect the exit code.
"""

import logging
import sys
from typing import Optional

from .alerts import AlertNotifier
from .config import DeployConfig
from .errors import DeployError
from .manifest import write_manifest
from .pipeline import DeploymentPipeline

logger = logging.getLogger(__name__)

LOG_FILE = 'l1_deploy.log'


def configure_logging(log_file: Optional[str] = LOG_FILE):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def main(config: Optional[DeployConfig] = None) -> int:
    """Run the pipeline once and return the process exit code"""
    pipeline = None
    notifier = None
    try:
        if config is None:
            config = DeployConfig.from_env()
        notifier = AlertNotifier(config)
        pipeline = DeploymentPipeline.from_config(config)
        pipeline.run()
    except DeployError as e:
        logger.error(f"Deployment failed: {e}")
        _finish(config, pipeline, notifier, failure=str(e))
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        _finish(config, pipeline, notifier, failure=str(e))
        return 1

    _finish(config, pipeline, notifier)
    return 0


def _finish(config: Optional[DeployConfig], pipeline: Optional[DeploymentPipeline],
            notifier: Optional[AlertNotifier], failure: Optional[str] = None):
    """Persist the manifest and raise alerts without masking the run's outcome"""
    if pipeline is not None and config is not None and config.manifest_path:
        try:
            write_manifest(pipeline.report, config.manifest_path)
        except OSError as e:
            logger.error(f"Failed to write deployment manifest: {e}")

    if failure and notifier is not None and notifier.enabled:
        notifier.send_alert(f"Deployment failed: {failure}", pipeline.report if pipeline else None)


def run():
    configure_logging()
    sys.exit(main())


if __name__ == "__main__":
    run()
