"""CodeFeatures CLI: language-feature detection over repository ASTs."""

__version__ = "0.1.0"
