#!/usr/bin/env python3
"""
CLI tool for interacting with the validation service.

Usage:
    python -m validation_svc.cli --caller 0xaaa... transfer 0xaaa... 0xbbb... 7
    python -m validation_svc.cli pending
    python -m validation_svc.cli --caller 0xvvv... confirm-transfer 0
    python -m validation_svc.cli --caller 0xaaa... approve-all 0xccc...
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx
from colorama import Fore, Style, init as colorama_init

colorama_init()


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def format_state(state: str) -> str:
    color = Fore.GREEN if state == "confirmed" else Fore.YELLOW
    return colorize(state, color)


def print_json(data: Any, indent: int = 2) -> None:
    print(json.dumps(data, indent=indent, default=str))


def print_transfer(req: dict) -> None:
    print(
        f"  {colorize('#' + str(req['request_index']), Fore.CYAN)} "
        f"asset {req['asset_id']}: {req['from_address']} -> {req['to_address']} "
        f"[{format_state(req['state'])}]"
    )


def print_approval(req: dict) -> None:
    target = colorize("all assets", Fore.MAGENTA) if req["approve_all"] else f"asset {req['asset_id']}"
    print(
        f"  {colorize('#' + str(req['request_index']), Fore.CYAN)} "
        f"{req['owner']} grants {req['grantee']} {target} "
        f"[{format_state(req['state'])}]"
    )


def _get_headers(args) -> dict:
    """Build request headers."""
    headers = {}
    if args.caller:
        headers["X-Caller-Address"] = args.caller
    if args.app_id:
        headers["X-App-ID"] = args.app_id
    return headers


def _report_error(response: httpx.Response) -> int:
    print(colorize(f"Error: {response.status_code}", Fore.RED), file=sys.stderr)
    print(response.text, file=sys.stderr)
    return 1


async def _post(args, path: str, body: dict | None = None) -> httpx.Response:
    async with httpx.AsyncClient(base_url=args.base_url) as client:
        return await client.post(path, json=body, headers=_get_headers(args))


async def _get(args, path: str, params: dict | None = None) -> httpx.Response:
    async with httpx.AsyncClient(base_url=args.base_url) as client:
        return await client.get(path, params=params, headers=_get_headers(args))


def _print_submit(data: dict) -> None:
    if data["status"] == "executed":
        print(colorize("Executed:", Style.BRIGHT), data.get("message", ""))
    else:
        print(colorize("Pending:", Style.BRIGHT), f"request #{data['request_index']}")
        print(colorize(data.get("message", ""), Style.DIM))


async def cmd_transfer(args):
    """Submit a transfer."""
    response = await _post(args, "/validation/transfers", {
        "from_address": args.from_address,
        "to_address": args.to_address,
        "asset_id": args.asset_id,
    })
    if response.status_code != 200:
        return _report_error(response)
    _print_submit(response.json())
    return 0


async def cmd_approve(args):
    """Request a single-asset approval."""
    response = await _post(args, "/validation/approvals", {
        "grantee": args.grantee,
        "asset_id": args.asset_id,
    })
    if response.status_code != 200:
        return _report_error(response)
    _print_submit(response.json())
    return 0


async def cmd_operator(args, grant: bool):
    """Grant or revoke an operator."""
    response = await _post(args, "/validation/approvals/operators", {
        "operator": args.operator,
        "grant": grant,
    })
    if response.status_code != 200:
        return _report_error(response)
    _print_submit(response.json())
    return 0


async def cmd_confirm(args, kind: str):
    """Confirm a pending transfer or approval."""
    response = await _post(args, f"/validation/{kind}s/{args.request_id}/confirm")
    if response.status_code != 200:
        return _report_error(response)

    print(colorize(f"Confirmed {kind} request:", Style.BRIGHT))
    if kind == "transfer":
        print_transfer(response.json())
    else:
        print_approval(response.json())
    return 0


async def cmd_show(args, kind: str):
    """Show a single request."""
    response = await _get(args, f"/validation/{kind}s/{args.request_id}")
    if response.status_code != 200:
        return _report_error(response)
    print_json(response.json())
    return 0


async def cmd_pending(args):
    """List pending transfers and approvals."""
    params = {"status": "pending"}
    transfers = await _get(args, "/validation/transfers", params)
    if transfers.status_code != 200:
        return _report_error(transfers)
    approvals = await _get(args, "/validation/approvals", params)
    if approvals.status_code != 200:
        return _report_error(approvals)

    print(colorize("\nPending transfers:", Style.BRIGHT))
    for req in transfers.json()["requests"]:
        print_transfer(req)

    print(colorize("\nPending approvals:", Style.BRIGHT))
    for req in approvals.json()["requests"]:
        print_approval(req)
    return 0


async def cmd_capabilities(args):
    response = await _get(args, "/validation/capabilities")
    if response.status_code != 200:
        return _report_error(response)
    print_json(response.json())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CLI tool for the Asset Validation Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--base-url",
        default="http://localhost:8060",
        help="Base URL of the validation service",
    )
    parser.add_argument(
        "--caller",
        help="Address to act as (sent as X-Caller-Address)",
    )
    parser.add_argument(
        "--app-id",
        help="Application ID for audit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    transfer_parser = subparsers.add_parser("transfer", help="Submit a transfer")
    transfer_parser.add_argument("from_address")
    transfer_parser.add_argument("to_address")
    transfer_parser.add_argument("asset_id", type=int)

    approve_parser = subparsers.add_parser("approve", help="Request approval for one asset")
    approve_parser.add_argument("grantee")
    approve_parser.add_argument("asset_id", type=int)

    grant_parser = subparsers.add_parser("approve-all", help="Request an operator grant")
    grant_parser.add_argument("operator")

    revoke_parser = subparsers.add_parser("revoke-all", help="Revoke an operator")
    revoke_parser.add_argument("operator")

    for name, help_text in (
        ("confirm-transfer", "Confirm a pending transfer"),
        ("confirm-approval", "Confirm a pending approval"),
        ("show-transfer", "Show a transfer request"),
        ("show-approval", "Show an approval request"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("request_id", type=int)

    subparsers.add_parser("pending", help="List pending requests")
    subparsers.add_parser("capabilities", help="Feature probe and totals")

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "transfer":
        return asyncio.run(cmd_transfer(args))
    elif args.command == "approve":
        return asyncio.run(cmd_approve(args))
    elif args.command == "approve-all":
        return asyncio.run(cmd_operator(args, grant=True))
    elif args.command == "revoke-all":
        return asyncio.run(cmd_operator(args, grant=False))
    elif args.command == "confirm-transfer":
        return asyncio.run(cmd_confirm(args, "transfer"))
    elif args.command == "confirm-approval":
        return asyncio.run(cmd_confirm(args, "approval"))
    elif args.command == "show-transfer":
        return asyncio.run(cmd_show(args, "transfer"))
    elif args.command == "show-approval":
        return asyncio.run(cmd_show(args, "approval"))
    elif args.command == "pending":
        return asyncio.run(cmd_pending(args))
    elif args.command == "capabilities":
        return asyncio.run(cmd_capabilities(args))
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
