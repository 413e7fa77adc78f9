"""Administrative control plane for the relay service.

Bootstraps the administrative credential and manages the expiry lifecycle
of issued API keys.
"""

from ._version import __version__

__all__ = ["__version__"]
