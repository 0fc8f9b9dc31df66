"""Pydantic schemas package.

Folder intent:
  common.py    — CamelModel base + HealthResponse (all schemas inherit CamelModel)
  auth.py      — Registration, login and session payloads
  customer.py  — REFERENCE pattern (copy when adding invoices, expenses, etc.)
  audit.py     — Audit log read models and summary
  access.py    — Team members, role grants, feature toggles
"""
