"""
Club Management Module

Servizi del portale del club. Il router si importa da fastclub.club.router.
"""
from .models import ALL_SECTIONS, SECTION_LABELS, AppSection, Profile

__all__ = [
    "ALL_SECTIONS",
    "SECTION_LABELS",
    "AppSection",
    "Profile",
]
