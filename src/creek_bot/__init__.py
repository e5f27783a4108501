"""
Creek lending bot for Sui.

Discovers protocol entry points from on-chain metadata, probes amounts with
dry runs and submits with shrink-on-limit retries.
"""

__version__ = "0.3.0"
