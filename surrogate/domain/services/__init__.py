"""
Domain Services Package

Architectural Intent:
- Contains domain services shared by every resource manager
"""

from surrogate.domain.services.state_poller import wait_for_state, wait_with_policy

__all__ = ["wait_for_state", "wait_with_policy"]
