"""Operator tool for the stored freee credential.

Commands:

``status``
    Print the stored credential state without refreshing it.
``refresh``
    Exchange the stored refresh token immediately.
``seed``
    Store an access/refresh token pair obtained out-of-band.
``authorize-url``
    Print the freee consent URL for the out-of-band authorization flow.
``exchange``
    Trade an authorization code for a token pair and store it.

Example usages::

    python -m scripts.token_admin authorize-url
    python -m scripts.token_admin exchange --code 0123abcd
    python -m scripts.token_admin status
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable

from pydantic import ValidationError

from kintai_relay.clients.errors import (
    CredentialError,
    CredentialStoreError,
    FreeeAPIError,
)
from kintai_relay.core.config import _load_env_file
from kintai_relay.dependencies.clients import get_freee_oauth_client, get_token_manager

EXIT_OK = 0
EXIT_CREDENTIAL_ERROR = 2
EXIT_API_ERROR = 3
EXIT_RUNTIME_ERROR = 5


async def _show_status() -> int:
    status = await get_token_manager().get_token_status()
    print(status.model_dump_json(indent=2))
    if status.storage == "error":
        return EXIT_RUNTIME_ERROR
    if not status.present:
        print("No freee credential stored. Run 'seed' or 'exchange' first.", file=sys.stderr)
        return EXIT_CREDENTIAL_ERROR
    return EXIT_OK


async def _refresh() -> int:
    token_manager = get_token_manager()
    await token_manager.refresh_access_token()
    status = await token_manager.get_token_status()
    print(f"Refreshed freee access token; expires at {status.expires_at}")
    return EXIT_OK


async def _seed(access_token: str, refresh_token: str, expires_in: int) -> int:
    record = await get_token_manager().seed_tokens(access_token, refresh_token, expires_in)
    print(f"Stored freee credential; expires at {record.expires_at.isoformat()}")
    return EXIT_OK


async def _exchange(code: str) -> int:
    grant = await get_freee_oauth_client().exchange_authorization_code(code)
    record = await get_token_manager().seed_tokens(
        grant.access_token, grant.refresh_token, grant.expires_in
    )
    print(f"Authorized freee credential; expires at {record.expires_at.isoformat()}")
    return EXIT_OK


async def _authorize_url(state: str | None) -> int:
    print(get_freee_oauth_client().build_authorization_url(state=state))
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the stored freee credential.")
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show the stored credential state.")
    subparsers.add_parser("refresh", help="Refresh the access token now.")

    seed_parser = subparsers.add_parser("seed", help="Store an initial token pair.")
    seed_parser.add_argument("--access-token", required=True)
    seed_parser.add_argument("--refresh-token", required=True)
    seed_parser.add_argument(
        "--expires-in",
        type=int,
        default=21600,
        help="Access token lifetime in seconds (default: 21600).",
    )

    authorize_parser = subparsers.add_parser(
        "authorize-url", help="Print the freee consent URL."
    )
    authorize_parser.add_argument("--state", default=None)

    exchange_parser = subparsers.add_parser(
        "exchange", help="Exchange an authorization code and store the tokens."
    )
    exchange_parser.add_argument("--code", required=True)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _load_env_file(str(args.env_file))

    command: str = args.command
    handlers: dict[str, Callable[[], Awaitable[int]]] = {
        "status": _show_status,
        "refresh": _refresh,
        "seed": lambda: _seed(args.access_token, args.refresh_token, args.expires_in),
        "authorize-url": lambda: _authorize_url(args.state),
        "exchange": lambda: _exchange(args.code),
    }

    try:
        return asyncio.run(handlers[command]())
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR
    except CredentialError as exc:
        print(f"Credential error: {exc}", file=sys.stderr)
        return EXIT_CREDENTIAL_ERROR
    except FreeeAPIError as exc:
        print(f"freee API error: {exc}", file=sys.stderr)
        return EXIT_API_ERROR
    except CredentialStoreError as exc:
        print(f"Credential store error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
