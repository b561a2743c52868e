#!/usr/bin/env python3
"""
La Gramola - backend de la gramola de bar (FastAPI)
"""

__version__ = "1.0.0"
