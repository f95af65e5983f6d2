"""
Shared Infrastructure
=====================

Low-level technical concerns:
- JSON logging setup
- Correlation-scoped loggers
- Latency timing
"""
