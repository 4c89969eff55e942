"""
Backorder Proxy

Relay between the storefront app proxy and the backorder processing function.
Verifies the app proxy signature on every request before forwarding.
"""

__version__ = "1.0.0"
