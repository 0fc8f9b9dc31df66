"""Customer service — REFERENCE pattern for tenant-owned CRUD.

How to add a new tenant-owned resource:
  1. Take `ctx: RequestContext` as the first argument of every method
  2. Scope every statement with `business_id = ctx.business_id`
  3. Run SQL through the QueryGateway with $n placeholders
  4. After a successful write, schedule the matching audit record

Rule: No FastAPI here. Pure Python business logic.
"""


import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from bizcore.core.context import RequestContext
from bizcore.core.exceptions import NotFoundError
from bizcore.core.pagination import PaginationParams
from bizcore.db.gateway import QueryGateway, escape_like
from bizcore.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from bizcore.services.audit import AuditRecorder

logger = logging.getLogger(__name__)

RESOURCE = "customer"

_SORTABLE = {"created_at", "updated_at", "first_name", "last_name", "email", "status"}
# Column names that may appear in a SET clause; values are always bound.
_UPDATABLE = tuple(CustomerUpdate.model_fields)


class CustomerService:
    def __init__(self, gateway: QueryGateway, audit: AuditRecorder):
        self._db = gateway
        self._audit = audit

    async def list_customers(
        self,
        ctx: RequestContext,
        pagination: PaginationParams,
        status: str | None = None,
        search: str | None = None,
    ) -> tuple[list[CustomerOut], int]:
        where = ["business_id = $1", "deleted_at IS NULL"]
        params: list[Any] = [ctx.business_id]
        if status:
            params.append(status)
            where.append(f"status = ${len(params)}")
        if search:
            params.append(f"%{escape_like(search.lower())}%")
            n = len(params)
            where.append(
                f"(LOWER(first_name) LIKE ${n} ESCAPE '\\' "
                f"OR LOWER(last_name) LIKE ${n} ESCAPE '\\' "
                f"OR LOWER(email) LIKE ${n} ESCAPE '\\')"
            )
        clause = " AND ".join(where)

        total_rows = await self._db.execute(
            f"SELECT COUNT(*) AS total FROM customers WHERE {clause}", params
        )
        sort = pagination.sort if pagination.sort in _SORTABLE else "created_at"
        direction = "ASC" if pagination.order == "asc" else "DESC"
        n = len(params)
        rows = await self._db.execute(
            f"SELECT * FROM customers WHERE {clause} "
            f"ORDER BY {sort} {direction} LIMIT ${n + 1} OFFSET ${n + 2}",
            [*params, pagination.limit, pagination.offset],
        )
        return [CustomerOut.model_validate(r) for r in rows], int(total_rows[0]["total"])

    async def get_customer(self, ctx: RequestContext, customer_id: str) -> CustomerOut:
        rows = await self._db.execute(
            "SELECT * FROM customers WHERE id = $1 AND business_id = $2 AND deleted_at IS NULL",
            [customer_id, ctx.business_id],
        )
        if not rows:
            raise NotFoundError("Customer", customer_id)
        return CustomerOut.model_validate(rows[0])

    async def create_customer(self, ctx: RequestContext, data: CustomerCreate) -> CustomerOut:
        now = datetime.now(timezone.utc)
        rows = await self._db.execute(
            """
            INSERT INTO customers (
                id, business_id, first_name, last_name, email, phone, address,
                status, notes, created_by, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, 'active', $8, $9, $10, $10)
            RETURNING *
            """,
            [
                str(uuid.uuid4()),
                ctx.business_id,
                data.first_name,
                data.last_name,
                data.email,
                data.phone,
                data.address,
                data.notes,
                ctx.user_id,
                now,
            ],
        )
        customer = CustomerOut.model_validate(rows[0])
        logger.info("Customer created | business_id=%s customer_id=%s", ctx.business_id, customer.id)
        self._audit.spawn(
            self._audit.log_create(ctx, RESOURCE, customer.id, data.model_dump(exclude_none=True))
        )
        return customer

    async def update_customer(
        self, ctx: RequestContext, customer_id: str, data: CustomerUpdate
    ) -> CustomerOut:
        before = await self.get_customer(ctx, customer_id)  # raises 404 if missing
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return before

        assignments = []
        params: list[Any] = []
        for column in _UPDATABLE:
            if column in changes:
                params.append(changes[column])
                assignments.append(f"{column} = ${len(params)}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")
        params.extend([customer_id, ctx.business_id])
        n = len(params)

        rows = await self._db.execute(
            f"UPDATE customers SET {', '.join(assignments)} "
            f"WHERE id = ${n - 1} AND business_id = ${n} AND deleted_at IS NULL RETURNING *",
            params,
        )
        if not rows:
            raise NotFoundError("Customer", customer_id)
        after = CustomerOut.model_validate(rows[0])
        old_values = {key: getattr(before, key) for key in changes}
        self._audit.spawn(self._audit.log_update(ctx, RESOURCE, customer_id, old_values, changes))
        return after

    async def delete_customer(self, ctx: RequestContext, customer_id: str) -> None:
        before = await self.get_customer(ctx, customer_id)
        rows = await self._db.execute(
            "UPDATE customers SET deleted_at = $1 "
            "WHERE id = $2 AND business_id = $3 AND deleted_at IS NULL RETURNING id",
            [datetime.now(timezone.utc), customer_id, ctx.business_id],
        )
        if not rows:
            raise NotFoundError("Customer", customer_id)
        self._audit.spawn(self._audit.log_delete(ctx, RESOURCE, customer_id, before))
