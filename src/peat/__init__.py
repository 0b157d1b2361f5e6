"""peat: interactive terminal client for Prometheus."""

__version__ = "0.3.0"
