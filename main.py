"""Command-line interface for the splitIt web front."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from getpass import getpass
from typing import Optional, Sequence

import anyio

from splitit.alerts import AlertService
from splitit.client import APIError, SplitItClient
from splitit.config import Settings, load_settings, resolve_config_path
from splitit.dialogs import DialogState, TransactionByGroupDialog
from splitit.modal import ModalInstance

logger = logging.getLogger("splitit.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    # Global options are accepted before or after the subcommand. The parsers share
    # these actions, so defaults live on the namespace instead of on the actions.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="Path to a YAML settings file (default: $SPLITIT_CONFIG or config/splitit.yaml)",
    )
    common.add_argument(
        "--api-url",
        default=argparse.SUPPRESS,
        help="Base URL of the splitIt REST backend (overrides SPLITIT_API_URL)",
    )

    parser = argparse.ArgumentParser(description="splitIt web front utilities", parents=[common])
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the web front")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    summaries_parser = subparsers.add_parser(
        "summaries", parents=[common], help="Print the current user's transaction summaries for a group"
    )
    summaries_parser.add_argument("group_id", type=int, help="Identifier of the group")
    summaries_parser.add_argument(
        "--username",
        default=None,
        help="Account login. Defaults to the SPLITIT_USERNAME environment variable.",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "summaries"}

    # Default to "serve" when no subcommand is named.
    if not any(arg in known_commands for arg in args_list) and not any(
        flag in args_list for flag in ("-h", "--help")
    ):
        args_list = ["serve", *args_list]

    return parser.parse_args(args_list, namespace=argparse.Namespace(config=None, api_url=None))


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = resolve_config_path(args.config or os.getenv("SPLITIT_CONFIG"))
    settings = load_settings(config_path)
    if args.api_url:
        settings = settings.with_overrides(api_base_url=args.api_url.strip().rstrip("/"))
    return settings


def _serve(settings: Settings, *, host: str, port: int) -> None:
    from splitit.web import create_app
    import uvicorn

    logger.info("Starting splitIt web front on http://%s:%s (backend %s)", host, port, settings.api_base_url)
    app = create_app(settings=settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


async def _fetch_summaries(
    settings: Settings,
    *,
    group_id: int,
    username: str,
    password: str,
) -> int:
    async with SplitItClient(
        settings.api_base_url,
        timeout=settings.api_timeout,
        verify=settings.api_verify,
    ) as anonymous:
        try:
            token = await anonymous.authenticate(username, password)
        except APIError as exc:
            print(f"Authentication failed: {exc.message}")
            return 1

    alerts = AlertService()
    async with SplitItClient(
        settings.api_base_url,
        token=token,
        timeout=settings.api_timeout,
        verify=settings.api_verify,
    ) as client:
        dialog = TransactionByGroupDialog(
            backend=client,
            modal=ModalInstance("cli"),
            alerts=alerts,
            group_id=group_id,
        )
        state = await dialog.open()

    if state is not DialogState.LOADED:
        for alert in alerts.consume():
            print(f"Error: {alert.message}")
        return 1

    account = dialog.logged_in_account
    print(f"{dialog.total_items} summary record(s) in group {group_id} for {account.login if account else username}:")
    for summary in dialog.summaries:
        print("- " + ", ".join(f"{key}={value}" for key, value in summary.items()))
    return 0


def _run_summaries(settings: Settings, *, group_id: int, username: Optional[str]) -> int:
    login = username or os.getenv("SPLITIT_USERNAME")
    if not login:
        print("No username configured. Pass --username or set SPLITIT_USERNAME.")
        return 2

    password = os.getenv("SPLITIT_PASSWORD") or getpass("Password: ")
    if not password:
        print("A password is required.")
        return 2

    async def _main() -> int:
        return await _fetch_summaries(settings, group_id=group_id, username=login, password=password)

    return anyio.run(_main)


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = _load_settings(args)

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
    elif args.command == "summaries":
        raise SystemExit(_run_summaries(settings, group_id=args.group_id, username=args.username))


if __name__ == "__main__":
    main()
