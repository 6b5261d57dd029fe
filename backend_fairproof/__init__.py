"""
Backend Fairproof — provably-fair round verification for Solana casino games.

Fetches resolved rounds for a wallet, re-derives every outcome from the
revealed server seed and compares it with what the server stored. Modular
architecture: crypto primitives, per-game reproducers, verification
orchestrator, history feed and API server.
"""

__version__ = "0.1.0"
