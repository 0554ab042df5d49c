# PIM Platform - Shared Libraries
"""
Shared core library for PIM PRIME.

Modules:
    pim_core: Policy rule model, builder, approval value types, errors
"""

__version__ = "1.0.0"
