"""
Service Interfaces

Abstract base classes for the collaborators the response dispatcher depends on.
This allows for dependency injection and easier testing/mocking.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class ISerializer(ABC):
    """
    Interface for payload serialization.

    Implementations convert typed objects to bytes in a declared content type.
    """

    content_type: str

    @abstractmethod
    def serialize(self, obj: Any) -> bytes:
        """
        Serialize an object to bytes.

        Args:
            obj: Object to serialize

        Returns:
            Encoded bytes in self.content_type

        Raises:
            SerializationError: If obj contains unsupported types
        """
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        """
        Parse bytes produced by a client.

        Raises:
            SerializationError: If data cannot be parsed
        """
        pass


class IRouteResolver(ABC):
    """
    Interface for route resolution.

    Maps an endpoint identifier (plus optional verb / route index selectors)
    to a URL filled with route values.
    """

    @abstractmethod
    def resolve(
        self,
        endpoint_name: str,
        route_values: Optional[Mapping[str, Any]] = None,
        verb: Optional[str] = None,
        route_number: Optional[int] = None,
    ) -> str:
        """
        Resolve the URL of a registered endpoint.

        Args:
            endpoint_name: Stable endpoint identifier
            route_values: Values for the route template's parameters
            verb: Selects among the endpoint's verbs
            route_number: Selects among the endpoint's routes (0-based)

        Returns:
            The resolved URL path

        Raises:
            RouteResolutionError: If the route is missing or ambiguous
        """
        pass
