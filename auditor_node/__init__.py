"""
Auditor Node package initializer

Keep this module lightweight. Do not import the API or executor here, so
runtime-only users do not pull in FastAPI.
"""

__all__ = []
