"""
API server — FastAPI surface over the history feed and the verifiers.

Stateless: every request fetches from the upstream game backend and
re-verifies; nothing is persisted.
"""
