"""
Package: webhook_emitter
Description: Outbound webhook delivery service.

Validates delivery jobs, filters them against subscription scopes,
builds signed envelopes, POSTs them, and drives retry and
deactivation from the observed response.
"""

__version__ = "0.1.0"
