"""
Request Validator Services

Validators run after pydantic has bound the request DTO and add rules that
need application state (configuration, services) to evaluate. They collect
failures instead of raising so that every problem is reported at once.
"""
import logging
from typing import Generic, List, TypeVar

from config.app_config import AppConfig
from domain.value_objects import ValidationFailure
from dtos.request.admin_request import AdminLoginRequest

logger = logging.getLogger(__name__)

TRequest = TypeVar('TRequest')


class RequestValidator(Generic[TRequest]):
    """
    Base validator bound to the application config.

    Subclasses implement rules() and call self.fail() for each broken rule.
    """

    def __init__(self, config: AppConfig):
        if config is None:
            raise ValueError("config is required")
        self.config = config
        self._failures: List[ValidationFailure] = []

    def fail(self, field: str, message: str) -> None:
        self._failures.append(ValidationFailure(field=field, message=message))

    def rules(self, request: TRequest) -> None:
        raise NotImplementedError

    def validate(self, request: TRequest) -> List[ValidationFailure]:
        """
        Run all rules against the request.

        Returns:
            Failures in the order they were found (empty if valid)
        """
        self._failures = []
        self.rules(request)
        if self._failures:
            logger.debug(f"{type(self).__name__} found {len(self._failures)} failure(s)")
        return list(self._failures)


class AdminLoginValidator(RequestValidator[AdminLoginRequest]):
    """Validator for the admin login request"""

    MIN_LENGTH = 3

    def rules(self, request: AdminLoginRequest) -> None:
        if not self.config.token_key:
            self.fail("UserName", "config didn't resolve correctly!")

        if not request.user_name.strip():
            self.fail("UserName", "Username is required!")
        elif len(request.user_name) < self.MIN_LENGTH:
            self.fail("UserName", "Username too short!")

        if not request.password:
            self.fail("Password", "Password is required!")
        elif len(request.password) < self.MIN_LENGTH:
            self.fail("Password", "Password too short!")
