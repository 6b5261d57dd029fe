"""
Core — exceptions and cross-cutting concerns shared by crypto, reproducers,
verification and the history feed.
"""
