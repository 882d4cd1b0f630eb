# =======================================================================================
# campus_visitor/__init__.py - Package Initialization
# =======================================================================================
"""
Campus Visitor Management Service

Visitors request campus access, faculty approve requests and issue single-use
tokens, and security staff verify those tokens at the gate.
"""

__version__ = "1.0.0"
__author__ = "Campus Visitor Desk Team"
