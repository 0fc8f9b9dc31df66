"""v1 router package — all /api/v1/* endpoints live here.

Files:
  auth.py       — register / login / me
  customers.py  — REFERENCE router pattern (copy when adding invoices, expenses, etc.)
  audit.py      — audit log search, lookup, recent activity, summary
  users.py      — team members and their feature toggles (owners only)
  role_permissions.py — role grants (owners only)

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to bizcore/services/.
"""
