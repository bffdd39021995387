"""
Medical Practice API

A FastAPI backend for a small medical practice: doctor and patient sign-up,
patient records kept under doctor assignments, and appointment scheduling.
"""

__version__ = "1.0.0"
