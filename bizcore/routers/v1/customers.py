"""Customer CRUD router — REFERENCE pattern for all v1 routers.

Pattern:
  1. Declare a router with prefix and tags
  2. Resolve the RequestContext through a permission dependency
  3. Instantiate the service from app.state (gateway + audit recorder)
  4. Pass ctx explicitly into every service call; wrap the result in the envelope

Copy this file when building invoice, expense, etc. routers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from bizcore.core.context import RequestContext
from bizcore.core.pagination import PaginationParams
from bizcore.core.permissions import require_permission
from bizcore.core.response import DataResponse, ListResponse, paginated
from bizcore.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from bizcore.services.customer import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])


# ------------------------------------------------------------------
# Helper — instantiate service from process-wide state
# ------------------------------------------------------------------

def _svc(request: Request) -> CustomerService:
    return CustomerService(request.app.state.gateway, request.app.state.audit)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[CustomerOut])
async def list_customers(
    request: Request,
    filter_status: Optional[str] = Query(default=None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(default=None, description="Match name or email"),
    pagination: PaginationParams = Depends(),
    ctx: RequestContext = Depends(require_permission("customer:read")),
):
    """List the business's customers (paginated)."""
    items, total = await _svc(request).list_customers(
        ctx, pagination, status=filter_status, search=search
    )
    return paginated(items, total, pagination.page, pagination.limit)


@router.post("", response_model=DataResponse[CustomerOut], status_code=status.HTTP_201_CREATED)
async def create_customer(
    body: CustomerCreate,
    request: Request,
    ctx: RequestContext = Depends(require_permission("customer:create")),
):
    customer = await _svc(request).create_customer(ctx, body)
    return {"data": customer}


@router.get("/{customer_id}", response_model=DataResponse[CustomerOut])
async def get_customer(
    customer_id: str,
    request: Request,
    ctx: RequestContext = Depends(require_permission("customer:read")),
):
    return {"data": await _svc(request).get_customer(ctx, customer_id)}


@router.put("/{customer_id}", response_model=DataResponse[CustomerOut])
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    request: Request,
    ctx: RequestContext = Depends(require_permission("customer:update")),
):
    customer = await _svc(request).update_customer(ctx, customer_id, body)
    return {"data": customer}


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str,
    request: Request,
    ctx: RequestContext = Depends(require_permission("customer:delete")),
):
    await _svc(request).delete_customer(ctx, customer_id)
