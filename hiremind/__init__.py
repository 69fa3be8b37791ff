"""HireMind: resume-driven job recommendations."""

__version__ = "1.0.0"
