"""
L1 Settlement Deployment
========================

One-shot orchestrator that deploys and wires the L1 settlement contracts.

Structure:
- chain_state: latest L2 block and L1 chain id over JSON-RPC
- genesis: genesis header composed from the latest L2 block
- deployer / proxy: contract creation, directly and behind an initializing proxy
- wiring: post-deploy cross references between contracts
- verify: best-effort source verification
- pipeline / deploy: the fixed sequence and its command-line entry point
"""

__version__ = "1.0.0"
