"""API routers."""

from . import workflow

__all__ = ['workflow']
