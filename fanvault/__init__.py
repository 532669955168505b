"""
FanVault - access control and monetization ledger for creator subscriptions.

Decides whether a viewer may see a post and keeps the subscription, tip and
pay-per-view bookkeeping consistent with those decisions.
"""

__version__ = "0.1.0"
