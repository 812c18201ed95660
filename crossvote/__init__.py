"""Crossvote - consensus-governed rebalancing decisions."""

__version__ = "0.1.0"
