"""Scheduled triggers for token refresh and health checks.

``handler`` serves EventBridge-scheduled Lambda invocations; ``worker`` runs
the same jobs on a local interval loop.
"""

from __future__ import annotations

from typing import Any


def __getattr__(name: str) -> Any:
    if name == "lambda_handler":
        from .handler import lambda_handler as loaded_lambda_handler

        return loaded_lambda_handler
    raise AttributeError(name)


__all__ = ["lambda_handler"]
