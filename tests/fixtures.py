"""Function app fixtures and builders shared across the test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

HTTP_FUNCTION: dict[str, Any] = {
    "bindings": [
        {
            "authLevel": "function",
            "type": "httpTrigger",
            "direction": "in",
            "name": "req",
            "methods": ["get", "post"],
        },
        {"type": "http", "direction": "out", "name": "res"},
    ]
}

QUEUE_FUNCTION: dict[str, Any] = {
    "bindings": [
        {
            "name": "msg",
            "type": "queueTrigger",
            "direction": "in",
            "queueName": "orders",
            "connection": "AzureWebJobsStorage",
        }
    ]
}


def write_function_app(
    root: Path,
    functions: dict[str, dict[str, Any] | str],
    *,
    host: dict[str, Any] | str | None = None,
    settings: dict[str, str] | None = None,
) -> Path:
    """Lay out a function app: host.json, local.settings.json, one dir per function.

    String values are written verbatim so tests can produce invalid JSON.
    """
    root.mkdir(parents=True, exist_ok=True)
    host = {"version": "2.0"} if host is None else host
    (root / "host.json").write_text(host if isinstance(host, str) else json.dumps(host))

    if settings is not None:
        (root / "local.settings.json").write_text(
            json.dumps({"IsEncrypted": False, "Values": settings})
        )

    for name, document in functions.items():
        function_dir = root / name
        function_dir.mkdir()
        (function_dir / "function.json").write_text(
            document if isinstance(document, str) else json.dumps(document)
        )
    return root


@pytest.fixture
def function_app(tmp_path: Path) -> Path:
    """A python function app with one HTTP and one queue function."""
    return write_function_app(
        tmp_path / "app",
        {"HttpOrders": HTTP_FUNCTION, "QueueOrders": QUEUE_FUNCTION},
        settings={
            "FUNCTIONS_WORKER_RUNTIME": "python",
            "AzureWebJobsStorage": "UseDevelopmentStorage=true",
        },
    )
