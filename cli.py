#!/usr/bin/env python3
"""Simple CLI for the 0G inference client"""

import argparse
import asyncio
from typing import Optional

from zg_inference.config import settings
from zg_inference.core.controller import InferenceInProgressError, SessionController
from zg_inference.logging_config import setup_logging
from zg_inference.wallet import (
    ProviderUnavailableError,
    WalletError,
    detect_wallet_provider,
)


def prompt_approval(address: str) -> bool:
    answer = input(f"\n🔐 Allow this client to use account {address}? [y/N] ").strip().lower()
    return answer in ("y", "yes")


def build_controller(confirm: bool = False) -> SessionController:
    approve = prompt_approval if confirm else None
    return SessionController(
        settings,
        provider_factory=lambda: detect_wallet_provider(settings, approve=approve),
    )


def print_logs(controller: SessionController, since: int = 0) -> int:
    lines = controller.log.lines()
    for line in lines[since:]:
        print(f"   {line}")
    return len(lines)


async def cli_connect(controller: SessionController) -> bool:
    """Connect the wallet and print the session"""
    try:
        session = await controller.connect()
    except ProviderUnavailableError as e:
        print(f"❌ {e.title}")
        print(f"   {e}")
        return False
    except WalletError as e:
        print(f"❌ Connection failed: {e}")
        return False

    print(f"✅ Connected: {session.address}")
    if session.chain_id is not None:
        print(f"   Chain ID: {session.chain_id}")
    if session.balance_ether is not None:
        print(f"   Balance: {session.balance_ether} ETH")
    return True


async def cli_diagnose(controller: SessionController) -> None:
    """Standalone wallet connection test"""
    print("🩺 Wallet Connection Test")
    print("-" * 40)
    result = await controller.run_diagnostics()
    for step in result.steps:
        marker = "✅" if step.ok else "❌"
        print(f"{marker} {step.detail}")


async def cli_infer(controller: SessionController, message: Optional[str]) -> None:
    """Connect, run one inference, print the log and the answer"""
    if not await cli_connect(controller):
        print_logs(controller)
        return

    print("\n🤖 Running AI inference...")
    outcome = await controller.run_inference(message)
    print("\nLogs:")
    print_logs(controller)

    if outcome.ok:
        print("\nAI Response:")
        print("=" * 50)
        print(outcome.response)
    else:
        print(f"\n❌ Inference failed: {outcome.error}")


async def cli_shell(controller: SessionController) -> None:
    """Interactive mode"""
    print("🤖 0G Inference Client")
    print("Type 'help' for commands, 'exit' to quit")
    print("-" * 40)

    controller.describe_environment()
    shown = print_logs(controller)

    while True:
        try:
            user_input = input("\n> ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye! 👋")
            break

        if not user_input:
            continue

        command, _, argument = user_input.partition(" ")
        command = command.lower()

        if command in ("exit", "quit", "q"):
            print("Goodbye! 👋")
            break

        elif command in ("help", "h"):
            print("\nCommands:")
            print("  connect        - Connect wallet")
            print("  disconnect     - Disconnect wallet")
            print("  run [message]  - Run AI inference")
            print("  diagnose       - Wallet connection test")
            print("  status         - Show connection status")
            print("  logs           - Show all logs")
            print("  clear          - Clear logs")
            print("  exit           - Quit")
            continue

        elif command == "connect":
            await cli_connect(controller)

        elif command == "disconnect":
            controller.disconnect()
            print("🔌 Disconnected")

        elif command == "run":
            if not controller.is_connected:
                print("❌ Connect a wallet first")
                continue
            try:
                outcome = await controller.run_inference(argument or None)
            except InferenceInProgressError as e:
                print(f"⏳ {e}")
                continue
            if outcome.ok:
                print(f"\n💬 AI Response: {outcome.response}")

        elif command == "diagnose":
            await cli_diagnose(controller)

        elif command == "status":
            session = controller.wallet.session
            if session:
                print(f"Connected: {session.address} (chain {session.chain_id})")
            else:
                print("Not connected")

        elif command == "logs":
            shown = print_logs(controller)
            continue

        elif command == "clear":
            controller.log.clear()
            shown = 0
            print("Logs cleared.")
            continue

        else:
            print(f"❌ Unknown command: {command}")
            continue

        shown = print_logs(controller, shown)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="0G inference client CLI")
    parser.add_argument("--confirm", action="store_true", help="Ask before granting account access")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("connect", help="Connect the configured wallet")
    subparsers.add_parser("diagnose", help="Wallet connection test")

    infer_parser = subparsers.add_parser("infer", help="Run one AI inference")
    infer_parser.add_argument("--message", default=None, help="User message (default from settings)")

    subparsers.add_parser("shell", help="Interactive mode")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging(args.log_level or "WARNING")
    controller = build_controller(confirm=args.confirm)
    command = args.command.lower()

    try:
        if command == "connect":
            await cli_connect(controller)
            print_logs(controller)

        elif command == "diagnose":
            await cli_diagnose(controller)

        elif command == "infer":
            await cli_infer(controller, args.message)

        elif command == "shell":
            await cli_shell(controller)

        else:
            print(f"❌ Unknown command: {command}")
            parser.print_help()
    finally:
        await controller.aclose()


if __name__ == "__main__":
    asyncio.run(main())
