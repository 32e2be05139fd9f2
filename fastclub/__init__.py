"""
FastClub - portale di gestione per club Rotary
"""

__version__ = "1.0.0"
