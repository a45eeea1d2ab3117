"""prcomment: CI resource that acts on GitHub pull request comments and reviews."""

__version__ = "0.4.0"
