"""
Capability Registry - Which optional components are installed and at which
version.

Consumers ask the registry instead of probing a global flag, so a missing
component is an explicit answer rather than an undefined attribute.
"""

from typing import Dict, List, Optional


class CapabilityRegistry:
    """
    Registry of named capabilities.

    Example:
        >>> registry = CapabilityRegistry()
        >>> registry.register("recorder", "1.0.0")
        >>> registry.is_available("recorder")
        True
    """

    def __init__(self):
        self._capabilities: Dict[str, str] = {}

    def register(self, name: str, version: str) -> None:
        """
        Register a capability.

        Raises:
            ValueError: If the capability is already registered
        """
        if name in self._capabilities:
            raise ValueError(f"Capability '{name}' is already registered")
        self._capabilities[name] = version

    def unregister(self, name: str) -> None:
        self._capabilities.pop(name, None)

    def is_available(self, name: str) -> bool:
        return name in self._capabilities

    def version(self, name: str) -> Optional[str]:
        return self._capabilities.get(name)

    def list(self) -> List[str]:
        """List all registered capability names."""
        return sorted(self._capabilities)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._capabilities)
