"""
igtf_probe — IGTF CA distribution monitoring probe.

Checks a locally installed bundle of trust-anchor certificates against the
published distribution: release currency, package list membership, obsolete
CAs, and per-certificate SHA-1 fingerprints. Produces one Nagios-style
verdict per run.

Built on the Railway-Oriented Programming (ROP) style for explicit,
composable error handling.
"""

__version__ = "2.1.0"
