"""
CivicDesk
Citizen complaint desk: account login and Google sign-in
"""

__version__ = "1.0.0"
