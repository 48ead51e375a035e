"""
Customer API Endpoints

Create / fetch / delete customers, plus two download shapes of the same data:
a vCard built in memory (bytes) and a CSV export (stream).
"""

import csv
import io
import logging
from typing import Optional

import dependencies
from api.endpoint import Endpoint
from constants import HttpVerb
from dtos.request.customer_request import CreateCustomerRequest, GetCustomerRequest
from dtos.response.customer_response import CustomerResponse
from models import Customer

logger = logging.getLogger(__name__)


class CustomerEndpoint(Endpoint):
    """Shared helpers for endpoints backed by the customer repository"""

    def _load(self, customer_id: int) -> Optional[Customer]:
        with dependencies.db_session(self.resolve(dependencies.SESSION_FACTORY)) as db:
            return dependencies.get_customer_repository(db).get_by_id(customer_id)


class GetCustomerEndpoint(CustomerEndpoint):
    """GET /api/customers/{customer_id}"""

    endpoint_name = "GetCustomer"
    verbs = [HttpVerb.GET]
    routes = ["/api/customers/{customer_id:int}"]
    request_model = GetCustomerRequest

    async def handle(self, req: GetCustomerRequest):
        customer = self._load(req.customer_id)
        if customer is None:
            await self.send_not_found()
            return None
        return CustomerResponse.model_validate(customer)


class CreateCustomerEndpoint(Endpoint[CreateCustomerRequest, CustomerResponse]):
    """POST /api/customers"""

    endpoint_name = "CreateCustomer"
    verbs = [HttpVerb.POST]
    routes = ["/api/customers"]
    request_model = CreateCustomerRequest

    async def handle(self, req: CreateCustomerRequest):
        with dependencies.db_session(self.resolve(dependencies.SESSION_FACTORY)) as db:
            customer = dependencies.get_customer_repository(db).create(req.name, req.email, req.phone)
            body = CustomerResponse.model_validate(customer)

        logger.info(f"Created customer {body.id}")
        await self.send_created_at(GetCustomerEndpoint, {"customer_id": body.id}, body)


class DeleteCustomerEndpoint(Endpoint[GetCustomerRequest, None]):
    """DELETE /api/customers/{customer_id}"""

    endpoint_name = "DeleteCustomer"
    verbs = [HttpVerb.DELETE]
    routes = ["/api/customers/{customer_id:int}"]
    request_model = GetCustomerRequest

    async def handle(self, req: GetCustomerRequest):
        with dependencies.db_session(self.resolve(dependencies.SESSION_FACTORY)) as db:
            repo = dependencies.get_customer_repository(db)
            customer = repo.get_by_id(req.customer_id)
            if customer is None:
                await self.send_not_found()
                return
            repo.delete(customer)
            db.commit()

        logger.info(f"Deleted customer {req.customer_id}")
        await self.send_no_content()


def to_vcard(customer: Customer) -> bytes:
    lines = [
        "BEGIN:VCARD",
        "VERSION:4.0",
        f"FN:{customer.name}",
        f"EMAIL:{customer.email}",
    ]
    if customer.phone:
        lines.append(f"TEL:{customer.phone}")
    lines.append("END:VCARD")
    return ("\r\n".join(lines) + "\r\n").encode("utf-8")


class CustomerCardEndpoint(CustomerEndpoint):
    """GET /api/customers/{customer_id}/vcard"""

    endpoint_name = "GetCustomerCard"
    verbs = [HttpVerb.GET]
    routes = ["/api/customers/{customer_id:int}/vcard"]
    request_model = GetCustomerRequest

    async def handle(self, req: GetCustomerRequest):
        customer = self._load(req.customer_id)
        if customer is None:
            await self.send_not_found()
            return

        await self.send_bytes(
            to_vcard(customer),
            file_name=f"customer-{customer.id}.vcf",
            content_type="text/vcard; charset=utf-8",
            last_modified=customer.created_at,
        )


class ExportCustomersEndpoint(Endpoint[None, None]):
    """GET /api/customers/export"""

    endpoint_name = "ExportCustomers"
    verbs = [HttpVerb.GET]
    routes = ["/api/customers/export"]

    async def handle(self, req):
        with dependencies.db_session(self.resolve(dependencies.SESSION_FACTORY)) as db:
            customers = dependencies.get_customer_repository(db).get_all()

        text = io.StringIO()
        writer = csv.writer(text)
        writer.writerow(["id", "name", "email", "phone", "created_at"])
        for customer in customers:
            writer.writerow([customer.id, customer.name, customer.email, customer.phone or "", customer.created_at.isoformat()])

        await self.send_stream(
            io.BytesIO(text.getvalue().encode("utf-8")),
            file_name="customers.csv",
            content_type="text/csv; charset=utf-8",
            enable_range_processing=True,
        )
