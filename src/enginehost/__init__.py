"""Container engine connection runtime for Podman and Docker hosts."""

__version__ = "0.1.0"
