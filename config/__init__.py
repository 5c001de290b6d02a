"""
Configuration package for the bacterial evolution worker

This package contains the settings module.
"""

from .settings import settings

__version__ = "1.0.0" 
