"""Core numeric types and escape-time kernels."""
