"""Build selection and artifact copying between build-producing projects."""

__version__ = "0.1.0"
