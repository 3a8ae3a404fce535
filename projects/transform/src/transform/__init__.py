"""Column data transformations backed by external programs."""

from transform.external import ExternalTransformation, load_programs

__all__ = ["ExternalTransformation", "load_programs"]
