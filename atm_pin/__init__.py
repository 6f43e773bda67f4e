"""
ATM PIN Manager - Source Package

A demonstration account manager that issues PINs against a quality
policy, authenticates users with a lockout policy, and keeps account
state in a flat file.

DESIGN PRINCIPLES:
1. A weak PIN is never issued and never accepted on change
2. Every attempt is persisted, successful or not
3. Locking is terminal
4. Every account action is auditable
5. The on-disk encoding is reversible, not a secret
"""

__version__ = "1.0.0"
__author__ = "ATM PIN Manager Team"
