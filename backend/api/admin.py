"""
Admin API Endpoints

Admin login: validates the request against configuration-bound rules and
issues a signed session token.
"""

import hmac
import logging

import dependencies
from api.endpoint import Endpoint
from constants import HttpVerb
from dtos.request.admin_request import AdminLoginRequest
from dtos.response.admin_response import AdminLoginResponse
from services.request_validators import AdminLoginValidator
from services.token_service import issue_token

logger = logging.getLogger(__name__)

ADMIN_PERMISSIONS = ["Inventory_Create_Item", "Inventory_Retrieve_Item", "Customers_Create", "Customers_Delete"]


class AdminLoginEndpoint(Endpoint[AdminLoginRequest, AdminLoginResponse]):
    """POST /api/admin/login"""

    endpoint_name = "AdminLogin"
    verbs = [HttpVerb.POST]
    routes = ["/api/admin/login"]
    request_model = AdminLoginRequest
    validator_class = AdminLoginValidator

    async def handle(self, req: AdminLoginRequest):
        config = self.resolve(dependencies.CONFIG)

        valid_user = hmac.compare_digest(req.user_name.encode("utf-8"), config.admin_username.encode("utf-8"))
        valid_password = bool(config.admin_password) and hmac.compare_digest(req.password.encode("utf-8"), config.admin_password.encode("utf-8"))
        if not (valid_user and valid_password):
            logger.warning(f"Failed admin login for '{req.user_name}'")
            await self.send_unauthorized()
            return

        token, expires_at = issue_token(req.user_name, ADMIN_PERMISSIONS, config.token_key)
        logger.info(f"Admin '{req.user_name}' logged in")
        await self.send_json(AdminLoginResponse(
            jwt_token=token,
            expiry_date=expires_at,
            permissions=ADMIN_PERMISSIONS,
        ))
