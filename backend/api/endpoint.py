"""
Typed Endpoint Base

Endpoints are Starlette HTTPEndpoint classes with typed request/response DTOs.
Each instance handles exactly one request: it binds and validates the request
DTO, runs the handler and writes the response through a ResponseDispatcher.

Example:
    class GetCustomerEndpoint(Endpoint[GetCustomerRequest, CustomerResponse]):
        endpoint_name = "GetCustomer"
        verbs = [HttpVerb.GET]
        routes = ["/api/customers/{customer_id:int}"]
        request_model = GetCustomerRequest

        async def handle(self, req):
            customer = ...
            if customer is None:
                await self.send_not_found()
                return
            await self.send_json(CustomerResponse.model_validate(customer))
"""

import logging
from datetime import datetime
from typing import Any, ClassVar, Generic, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar

import pydantic
from fastapi import FastAPI
from starlette.endpoints import HTTPEndpoint
from starlette.requests import Request

import dependencies
from constants import ContentTypes, ErrorMessages, HttpVerb, HTTPStatus
from domain.value_objects import ValidationFailure
from exceptions import ConfigurationError, SerializationError, ValidationError
from services.endpoint_registry import EndpointRegistry
from services.response_dispatcher import Cancellation, ResponseDispatcher
from services.request_validators import RequestValidator
from utils.logging_utils import set_logging_context

logger = logging.getLogger(__name__)

TRequest = TypeVar('TRequest', bound=pydantic.BaseModel)
TResponse = TypeVar('TResponse')


class Endpoint(HTTPEndpoint, Generic[TRequest, TResponse]):
    """
    Base class for typed endpoints.

    Subclasses declare endpoint_name, verbs and routes, optionally a
    request_model and validator_class, and implement handle() (or
    handle_<verb>() for multi-verb endpoints).
    """

    endpoint_name: ClassVar[str] = ""
    verbs: ClassVar[Sequence[str]] = (HttpVerb.GET,)
    routes: ClassVar[Sequence[str]] = ()
    request_model: ClassVar[Optional[Type[pydantic.BaseModel]]] = None
    validator_class: ClassVar[Optional[Type[RequestValidator]]] = None
    dont_auto_send_errors: ClassVar[bool] = False

    request: Request
    dispatcher: ResponseDispatcher
    response: Optional[TResponse]

    async def dispatch(self) -> None:
        self.request = Request(self.scope, receive=self.receive)
        self.validation_failures: List[ValidationFailure] = []
        self.response = None

        config = self.resolve(dependencies.CONFIG)
        self.dispatcher = ResponseDispatcher(
            self.scope,
            self.receive,
            self.send,
            serializer=self.resolve(dependencies.SERIALIZER),
            route_resolver=self.resolve(dependencies.ENDPOINT_REGISTRY),
            chunk_size=config.stream_chunk_size,
        )
        set_logging_context(endpoint=self.endpoint_name)

        try:
            req = await self._bind_request()
            if self.validation_failed and not self.dont_auto_send_errors:
                logger.info(f"{self.endpoint_name}: rejected request with {len(self.validation_failures)} validation failure(s)")
                await self.send_errors()
                return

            result = await self._handler_for(self.request.method)(req)

            if not self.dispatcher.has_started:
                if result is None:
                    await self.send_empty_json_object()
                else:
                    await self.send_json(result)
        except ValidationError as e:
            if self.dispatcher.has_started:
                raise
            await self.dispatcher.send_errors(e.failures or self.validation_failures)

    def _handler_for(self, method: str):
        method = method.lower()
        if method == "head":
            method = "get"
        return getattr(self, f"handle_{method}", None) or self.handle

    async def handle(self, req: Optional[TRequest]) -> Optional[TResponse]:
        """Handle the request. Return a DTO to have it sent as JSON, or send explicitly."""
        raise NotImplementedError(f"{type(self).__name__} must implement handle()")

    # ------------------------------------------------------------------
    # Request binding and validation
    # ------------------------------------------------------------------

    async def _bind_request(self) -> Optional[TRequest]:
        if self.request_model is None:
            return None

        data: dict = dict(self.request.query_params)

        if HttpVerb.has_body(HttpVerb(self.request.method.upper())):
            raw = await self.request.body()
            try:
                parsed = self.dispatcher.serializer.deserialize(raw)
            except SerializationError:
                self.add_error("body", ErrorMessages.MALFORMED_BODY)
                return None
            if isinstance(parsed, dict):
                data.update(parsed)
            elif parsed is not None:
                self.add_error("body", "Request body must be a JSON object")
                return None

        data.update(self.request.path_params)

        try:
            req = self.request_model.model_validate(data)
        except pydantic.ValidationError as e:
            for error in e.errors():
                self.validation_failures.append(ValidationFailure.from_pydantic_error(error))
            return None

        if self.validator_class is not None:
            validator = self.validator_class(self.resolve(dependencies.CONFIG))
            self.validation_failures.extend(validator.validate(req))

        return req

    @property
    def validation_failed(self) -> bool:
        return bool(self.validation_failures)

    def add_error(self, field: str, message: str) -> None:
        self.validation_failures.append(ValidationFailure(field=field, message=message))

    def throw_error(self, field: str, message: str) -> None:
        """Add a failure and stop the handler; a 400 is sent with all collected failures."""
        self.add_error(field, message)
        self.throw_if_any_errors()

    def throw_if_any_errors(self) -> None:
        if self.validation_failures:
            raise ValidationError(ErrorMessages.VALIDATION_FAILED, failures=self.validation_failures)

    def resolve(self, name: str) -> Any:
        """
        Look up a service installed on app.state.

        Raises:
            ConfigurationError: If no service is registered under name
        """
        app = self.scope.get("app")
        try:
            return getattr(app.state, name)
        except AttributeError:
            raise ConfigurationError(f"Service '{name}' is not registered on app.state")

    # ------------------------------------------------------------------
    # Response sending
    # ------------------------------------------------------------------

    async def send_json(self, response: TResponse, status_code: int = HTTPStatus.OK, cancellation: Cancellation = None):
        """Send the response DTO serialized as JSON."""
        self.response = response
        await self.dispatcher.send_json(response, status_code, cancellation)

    async def send_created_at(
        self,
        endpoint: Any,
        route_values: Optional[Mapping[str, Any]] = None,
        response: Optional[TResponse] = None,
        verb: Optional[str] = None,
        route_number: Optional[int] = None,
        cancellation: Cancellation = None,
    ):
        """
        Send 201 Created with a Location header for the target endpoint.

        When the target serves several verbs pass `verb`; when it has several
        routes pass `route_number`.
        """
        if response is not None:
            self.response = response
        await self.dispatcher.send_created_at(endpoint, route_values, response, verb, route_number, cancellation)

    async def send_string(
        self,
        content: str,
        status_code: int = HTTPStatus.OK,
        content_type: str = ContentTypes.TEXT,
        cancellation: Cancellation = None,
    ):
        await self.dispatcher.send_string(content, status_code, content_type, cancellation)

    async def send_ok(self, cancellation: Cancellation = None):
        await self.dispatcher.send_ok(cancellation)

    async def send_errors(self, cancellation: Cancellation = None):
        """Send a 400 with the validation failures collected so far."""
        await self.dispatcher.send_errors(self.validation_failures, cancellation=cancellation)

    async def send_no_content(self, cancellation: Cancellation = None):
        await self.dispatcher.send_no_content(cancellation)

    async def send_not_found(self, cancellation: Cancellation = None):
        await self.dispatcher.send_not_found(cancellation)

    async def send_unauthorized(self, cancellation: Cancellation = None):
        await self.dispatcher.send_unauthorized(cancellation)

    async def send_forbidden(self, cancellation: Cancellation = None):
        await self.dispatcher.send_forbidden(cancellation)

    async def send_bytes(
        self,
        data: bytes,
        file_name: Optional[str] = None,
        content_type: str = ContentTypes.OCTET_STREAM,
        last_modified: Optional[datetime] = None,
        enable_range_processing: bool = False,
        cancellation: Cancellation = None,
    ):
        await self.dispatcher.send_bytes(data, file_name, content_type, last_modified, enable_range_processing, cancellation)

    async def send_file(
        self,
        path,
        content_type: str = ContentTypes.OCTET_STREAM,
        last_modified: Optional[datetime] = None,
        enable_range_processing: bool = False,
        cancellation: Cancellation = None,
    ):
        await self.dispatcher.send_file(path, content_type, last_modified, enable_range_processing, cancellation)

    async def send_stream(
        self,
        stream: Any,
        file_name: Optional[str] = None,
        length_hint: Optional[int] = None,
        content_type: str = ContentTypes.OCTET_STREAM,
        last_modified: Optional[datetime] = None,
        enable_range_processing: bool = False,
        cancellation: Cancellation = None,
    ):
        await self.dispatcher.send_stream(
            stream, file_name, length_hint, content_type, last_modified, enable_range_processing, cancellation
        )

    async def send_empty_json_object(self, cancellation: Cancellation = None):
        await self.dispatcher.send_empty_json_object(cancellation)


def map_endpoints(app: FastAPI, registry: EndpointRegistry, endpoints: Iterable[Type[Endpoint]]) -> None:
    """
    Register each endpoint class by name and mount its routes on the app.

    Raises:
        ConfigurationError: If an endpoint has no name or routes, or a name is reused
    """
    for endpoint_cls in endpoints:
        if not endpoint_cls.endpoint_name:
            raise ConfigurationError(f"{endpoint_cls.__name__} must declare endpoint_name")

        verbs = [HttpVerb(str(getattr(v, "value", v)).upper()).value for v in endpoint_cls.verbs]
        entry = registry.register(endpoint_cls.endpoint_name, verbs, endpoint_cls.routes)
        for route in entry.routes:
            app.add_route(route, endpoint_cls, methods=verbs, name=entry.name, include_in_schema=False)

        logger.info(f"Mapped {entry.name}: {', '.join(verbs)} {', '.join(entry.routes)}")
