"""textgo: recognize captured text and dispatch it to configured actions."""

__version__ = "1.0.0"
