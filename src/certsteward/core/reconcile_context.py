"""Reconcile key context variable for logging"""

import contextvars

# Create a context variable to store the key of the certificate being reconciled
reconcile_key_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "reconcile_key", default=None
)
