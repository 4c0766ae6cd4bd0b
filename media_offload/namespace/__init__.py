"""Device namespace access for the Media Offload Tool."""

from .provider import NamespaceProvider, ShellNamespaceProvider, MountedNamespaceProvider
from .accessor import NamespaceAccessor
from .probe import StabilityProbe
from .resolver import DeviceRootResolver, ResolvedRoot, MODE_MEDIA_ROOT, MODE_STORAGE_ROOT

__all__ = [
    'NamespaceProvider', 'ShellNamespaceProvider', 'MountedNamespaceProvider',
    'NamespaceAccessor', 'StabilityProbe', 'DeviceRootResolver', 'ResolvedRoot',
    'MODE_MEDIA_ROOT', 'MODE_STORAGE_ROOT',
]
