#!/usr/bin/env python3
"""Call a JSON-RPC method over WebSocket and print the result.

Example:
    tools/wsrpc-call.py ws://127.0.0.1:7000 test '["test"]'
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import aiohttp

from aiowsrpc import (
    RpcWebSocketClient,
    WsRpcError,
    WsRpcResponseError,
)


async def async_main() -> int:
    parser = argparse.ArgumentParser(description="Call a JSON-RPC method over WebSocket.")
    parser.add_argument("url", help="WebSocket URL, e.g. ws://127.0.0.1:7000")
    parser.add_argument("method", help="Method name")
    parser.add_argument("params", nargs="?", help="JSON-encoded params (optional)")
    parser.add_argument("--timeout", type=float, default=10.0, help="Response timeout in seconds (0 disables)")
    parser.add_argument("--notify", action="store_true", help="Send a notification instead of a call")
    parser.add_argument("--bare", action="store_true", help="Omit the jsonrpc version tag")
    parser.add_argument("--protocol", action="append", default=None, help="WebSocket subprotocol (repeatable)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        params = json.loads(args.params) if args.params is not None else None
    except ValueError as err:
        print(f"Invalid params JSON: {err}", file=sys.stderr)
        return 2

    async with aiohttp.ClientSession() as session:
        client = RpcWebSocketClient(session)
        client.configure(response_timeout=args.timeout)
        if args.bare:
            client.no_rpc()

        try:
            await client.async_connect(args.url, args.protocol)
            if args.notify:
                await client.async_notify(args.method, params)
                return 0
            result = await client.async_call(args.method, params)
        except WsRpcResponseError as err:
            print(json.dumps(err.error, indent=2), file=sys.stderr)
            return 1
        except WsRpcError as err:
            print(f"Error: {err}", file=sys.stderr)
            return 1
        finally:
            await client.async_close()

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(async_main()))
