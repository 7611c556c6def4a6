"""
PulseGuard - CI secret detection and reporting pipelines for Open Pulse

Runs external security scanners from a CI job and ships their results to
the Open Pulse project API:
- Secret detection with Gitleaks and an injected rule set
- Infrastructure misconfiguration scanning with Trivy
- SBOM generation with cdxgen
"""

__version__ = "1.0.0"
__author__ = "PulseGuard Contributors"


__all__ = [
    "__version__",
]
