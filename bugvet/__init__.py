"""bugvet - semantic checks for likely bugs in type-checked Go programs."""

__version__ = "0.1.0"
