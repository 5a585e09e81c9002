"""depsponsor - find sponsorship links for your dependencies."""

__version__ = "0.1.0"
