"""
Endpoint Registry Service

Explicit mapping from a stable endpoint name to the verbs and route templates
it is served on. Populated once at startup by map_endpoints(); read-only
afterwards, so concurrent requests can resolve routes without locking.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

from starlette.routing import compile_path, replace_params

from exceptions import ConfigurationError, RouteResolutionError
from services.interfaces import IRouteResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredEndpoint:
    """Verbs and route templates registered under one endpoint name"""

    name: str
    verbs: Tuple[str, ...]
    routes: Tuple[str, ...]


def _route_values_to_dict(route_values: Any) -> Dict[str, Any]:
    if route_values is None:
        return {}
    if isinstance(route_values, Mapping):
        return dict(route_values)
    if hasattr(route_values, "model_dump"):
        return route_values.model_dump()
    if hasattr(route_values, "__dict__"):
        return {k: v for k, v in vars(route_values).items() if not k.startswith("_")}
    raise RouteResolutionError(
        "<unknown>",
        f"Route values must be a mapping or object, got {type(route_values).__name__}",
    )


class EndpointRegistry(IRouteResolver):
    """
    Registry of endpoint routes used for link generation.

    Usage:
        registry = EndpointRegistry()
        registry.register("GetCustomer", ["GET"], ["/api/customers/{customer_id:int}"])
        registry.resolve("GetCustomer", {"customer_id": 7})  # "/api/customers/7"
    """

    def __init__(self):
        self._endpoints: Dict[str, RegisteredEndpoint] = {}

    def register(self, name: str, verbs: Iterable[str], routes: Iterable[str]) -> RegisteredEndpoint:
        """
        Register an endpoint under a unique name.

        Raises:
            ConfigurationError: If the name is taken or no verbs/routes are given
        """
        if name in self._endpoints:
            raise ConfigurationError(f"Endpoint name '{name}' is already registered")

        entry = RegisteredEndpoint(
            name=name,
            verbs=tuple(v.upper() for v in verbs),
            routes=tuple(routes),
        )
        if not entry.verbs or not entry.routes:
            raise ConfigurationError(f"Endpoint '{name}' must declare at least one verb and one route")

        self._endpoints[name] = entry
        logger.debug(f"Registered endpoint {name}: {', '.join(entry.verbs)} {', '.join(entry.routes)}")
        return entry

    def get(self, name: str) -> Optional[RegisteredEndpoint]:
        return self._endpoints.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)

    def names(self) -> List[str]:
        return list(self._endpoints)

    def resolve(
        self,
        endpoint_name: str,
        route_values: Optional[Mapping[str, Any]] = None,
        verb: Optional[str] = None,
        route_number: Optional[int] = None,
    ) -> str:
        entry = self._endpoints.get(endpoint_name)
        if entry is None:
            raise RouteResolutionError(endpoint_name, f"No endpoint registered with name '{endpoint_name}'")

        self._select_verb(entry, verb)
        template = self._select_route(entry, route_number)
        return self._fill_template(entry.name, template, _route_values_to_dict(route_values))

    def _select_verb(self, entry: RegisteredEndpoint, verb: Optional[str]) -> str:
        if verb is None:
            if len(entry.verbs) > 1:
                raise RouteResolutionError(
                    entry.name,
                    f"Endpoint '{entry.name}' serves multiple verbs ({', '.join(entry.verbs)}); specify 'verb'",
                )
            return entry.verbs[0]

        verb = str(getattr(verb, "value", verb)).upper()
        if verb not in entry.verbs:
            raise RouteResolutionError(entry.name, f"Endpoint '{entry.name}' does not serve {verb}")
        return verb

    def _select_route(self, entry: RegisteredEndpoint, route_number: Optional[int]) -> str:
        if route_number is None:
            if len(entry.routes) > 1:
                raise RouteResolutionError(
                    entry.name,
                    f"Endpoint '{entry.name}' has {len(entry.routes)} routes; specify 'route_number'",
                )
            return entry.routes[0]

        if not (0 <= route_number < len(entry.routes)):
            raise RouteResolutionError(
                entry.name,
                f"Route number {route_number} out of range for endpoint '{entry.name}'",
            )
        return entry.routes[route_number]

    @staticmethod
    def _fill_template(name: str, template: str, values: Dict[str, Any]) -> str:
        _, path_format, convertors = compile_path(template)

        missing = [param for param in convertors if values.get(param) is None]
        if missing:
            raise RouteResolutionError(name, f"Missing route values for '{name}': {', '.join(missing)}")

        path_values = {k: v for k, v in values.items() if k in convertors}
        try:
            path, _ = replace_params(path_format, convertors, path_values)
        except (AssertionError, ValueError, TypeError) as e:
            raise RouteResolutionError(name, f"Invalid route value for '{name}': {e}")

        query = {k: v for k, v in values.items() if k not in convertors and v is not None}
        if query:
            path = f"{path}?{urlencode(query, doseq=True)}"
        return path
