"""
Error taxonomy for the L1 deployment pipeline.

Fatal errors propagate unchanged to the top-level handler in deploy.main().
VerificationError is advisory and is caught where verification runs.
"""


class DeployError(Exception):
    """Base class for every error raised by the deployment pipeline"""


class ConfigurationError(DeployError):
    """Missing or invalid configuration, artifact or genesis input"""


class ProviderError(DeployError):
    """RPC endpoint unreachable or returned a malformed response"""


class DeploymentError(DeployError):
    """Contract creation transaction reverted or failed to confirm"""


class WiringError(DeployError):
    """A post-deploy linking call reverted"""


class VerificationError(DeployError):
    """Verification service rejected the submission or timed out"""
