"""artifactflow: response parsing and artifact lifecycle engine."""

__version__ = "0.1.0"
