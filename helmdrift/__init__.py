"""helmdrift: report configuration drift between a Helm release and the live cluster."""

__version__ = "0.1.0"
