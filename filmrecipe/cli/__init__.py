"""
Command line interface for filmrecipe.
"""

from .main import main

__all__ = ['main']
