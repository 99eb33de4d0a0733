"""
Analytic Kernel

Budget-vs-actual control over analytical accounts (cost centers):
- Rule-based auto-assignment of analytical accounts to transaction lines
- Budget lifecycle with immutable revision chains
- Optimistic concurrency on budget writes
- Structured, auditable logging
"""

__version__ = "0.1.0"
