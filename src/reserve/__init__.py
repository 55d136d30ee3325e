"""Payroll reserve tracker: role-scoped leads with best-effort cloud sync."""
