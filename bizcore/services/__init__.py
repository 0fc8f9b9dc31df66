"""Services package — all business logic lives here, never in routers.

Files:
  audit.py       — AuditRecorder: append-only, never-raising audit writes
  access.py      — Team members, role grants and feature toggles
  audit_log.py   — Audit log search / summary (read side)
  auth.py        — Business registration, login, current user
  customer.py    — REFERENCE service pattern (copy when adding invoices, expenses, etc.)

Rule: routers call services, services call the QueryGateway or repositories.
      No SQL in routers. No FastAPI imports in services.
"""
