"""Aura coaching backend: safety-gated, multi-stage coaching pipeline."""

__version__ = "0.1.0"
