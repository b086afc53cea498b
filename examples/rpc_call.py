"""Call Shelly RPC methods over BLE and print the JSON responses.

Usage:
    uv run python examples/rpc_call.py                         # scan and select a device
    uv run python examples/rpc_call.py --address AA:BB:CC:DD:EE:FF
    uv run python examples/rpc_call.py --name "ShellyPro-1234" --method Shelly.GetDeviceInfo
    uv run python examples/rpc_call.py --method Sys.SetConfig --params '{"config": {}}'
    METHOD="Shelly.GetDeviceInfo" uv run python examples/rpc_call.py

With no method, methods and params are prompted for interactively until an
empty method is entered.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from shellyrpc import (
    ParamsNotJsonError,
    ShellyRpcDevice,
    ShellyRpcError,
    discover_devices,
    find_device,
    parse_params,
)


async def _ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def select_device(scan_timeout: float):
    """Scan and let the user pick a device (or type an address)."""
    print("Scanning for Shelly devices...")
    devices = await discover_devices(timeout=scan_timeout)
    if not devices:
        raise SystemExit("No Shelly devices found")

    print("\nAvailable Shelly devices:")
    for index, device in enumerate(devices, start=1):
        print(f"  {index}. {device.name} [{device.address}] (RSSI: {device.rssi})")
    print(f"  {len(devices) + 1}. Enter custom address")

    answer = await _ask("\nSelect device (enter number): ")
    try:
        choice = int(answer)
    except ValueError:
        choice = 0

    if 1 <= choice <= len(devices):
        return devices[choice - 1].ble_device
    if choice == len(devices) + 1:
        address = await _ask("Enter device address (e.g., AA:BB:CC:DD:EE:FF): ")
        return await find_device(address=address)

    print("Invalid selection, using first device")
    return devices[0].ble_device


async def _ask_request(label: str) -> tuple[str, Any] | None:
    method = await _ask(f"{label} RPC method. E.g. Shelly.ListMethods. (empty to exit): ")
    if not method:
        return None
    while True:
        try:
            return method, parse_params(await _ask("Params JSON (optional, default {}): "))
        except ParamsNotJsonError as err:
            print(f"Error: {err}")


async def run(args: argparse.Namespace) -> None:
    if args.scan or not (args.address or args.name):
        ble_device = await select_device(args.scan_timeout)
    else:
        if args.address:
            print(f"Looking for device with address {args.address}")
        if args.name:
            print(f"Looking for device with name {args.name}")
        ble_device = await find_device(address=args.address, name=args.name)

    print(f"Connecting to: {ble_device.name or '(no name)'} [{ble_device.address}]")

    method = args.method or os.environ.get("METHOD", "")
    try:
        params = parse_params(args.params)
    except ParamsNotJsonError as err:
        raise SystemExit(str(err)) from err

    request = (method, params) if method else await _ask_request("Enter")

    async with ShellyRpcDevice(ble_device.address, ble_device=ble_device) as device:
        while request is not None:
            method, params = request
            try:
                response = await device.call(method, params)
                print("RPC response:")
                print(json.dumps(response, indent=2))
            except ShellyRpcError as err:
                print(f"Error: {err}", file=sys.stderr)

            request = await _ask_request("Next")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send JSON-RPC requests to a Shelly device over BLE.")
    parser.add_argument("--address", help="Device MAC address")
    parser.add_argument("--name", help="Exact advertised device name")
    parser.add_argument("--scan", action="store_true", help="Scan and select a device interactively")
    parser.add_argument("--scan-timeout", type=float, default=15.0, help="Scan duration in seconds. Default: 15")
    parser.add_argument("--method", help="RPC method, e.g. Shelly.GetStatus (default: $METHOD or prompt)")
    parser.add_argument("--params", help="Params as a JSON object, e.g. '{\"id\": 0}'")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass
    except ShellyRpcError as err:
        raise SystemExit(f"Error: {err}") from err


if __name__ == "__main__":
    main()
