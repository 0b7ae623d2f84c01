from . import nodes, serve, status

__all__ = ['nodes', 'serve', 'status']
