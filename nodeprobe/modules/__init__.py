"""
Probe and transport modules.
"""
from .ssh import CommandResult, HopExecutor

__all__ = [
    'CommandResult',
    'HopExecutor',
]
