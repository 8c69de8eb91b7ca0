"""
Router module: provider selection policy.

This module provides:
- select_provider(): the ordered, deterministic selection rule
- ProviderChoice: result of a selection (provider, id, matching rule)
- SelectionRule: enum naming each rule of the policy
"""

from aifactory.router.selection import ProviderChoice, SelectionRule, select_provider

__all__ = [
    "ProviderChoice",
    "SelectionRule",
    "select_provider",
]
