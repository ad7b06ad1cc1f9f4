#!/usr/bin/env python3
"""Check a Wealthsimple Trade login end to end

This script:
1. Loads client settings from the environment (.env supported)
2. Logs in with WSTRADE_EMAIL / WSTRADE_PASSWORD, prompting for the OTP
3. Lists the open accounts
4. Refreshes the tokens once to confirm the refresh token works

Usage:
    python scripts/check_login.py
"""

import asyncio
import os
import sys
from datetime import datetime
from getpass import getpass

from loguru import logger

from wstrade import ClientConfig, Session, WSTradeError


class Colors:
    """ANSI color codes for terminal output"""

    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    RESET = "\033[0m"


def print_status(success: bool, message: str) -> None:
    if success:
        print(f"{Colors.GREEN}✓{Colors.RESET} {message}")
    else:
        print(f"{Colors.RED}✗{Colors.RESET} {message}")


def print_info(message: str) -> None:
    print(f"{Colors.BLUE}ℹ{Colors.RESET}  {message}")


def prompt_otp() -> str:
    return input("One-time password: ").strip()


async def check_login() -> bool:
    """Log in, list accounts and refresh once

    Returns:
        True if every step succeeded, False otherwise
    """
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"\n{Colors.BLUE}=== Login Check ==={Colors.RESET}")
    print(f"{Colors.BLUE}Timestamp: {timestamp}{Colors.RESET}\n")

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        print_status(False, f"Invalid configuration: {e}")
        return False
    print_status(True, f"Configuration loaded ({config.base_url})")

    email = os.getenv("WSTRADE_EMAIL") or input("Email: ").strip()
    password = os.getenv("WSTRADE_PASSWORD") or getpass("Password: ")

    async with Session(config) as session:
        session.auth.on("otp", prompt_otp)

        try:
            print_info("Logging in...")
            await session.auth.login(email, password)
            print_status(True, "Logged in")
        except WSTradeError as e:
            print_status(False, f"Login failed: {e}")
            return False

        try:
            accounts = await session.accounts.all()
            print_status(True, f"Found {len(accounts)} account(s)")
            for name, account_id in accounts.items():
                print_info(f"{name}: {account_id}")
        except WSTradeError as e:
            print_status(False, f"Could not list accounts: {e}")
            return False

        try:
            tokens = await session.auth.refresh()
            expires = datetime.fromtimestamp(tokens.expires).strftime("%H:%M:%S")
            print_status(True, f"Token refresh works (new token expires {expires})")
        except WSTradeError as e:
            print_status(False, f"Token refresh failed: {e}")
            return False

    print(f"\n{Colors.GREEN}=== Login Check Passed ==={Colors.RESET}\n")
    return True


def main():
    logger.remove()
    logger.add(
        sys.stderr,
        level="WARNING",
        format="<level>{level}</level>: {message}",
    )

    try:
        success = asyncio.run(check_login())
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Check interrupted by user{Colors.RESET}")
        sys.exit(1)


if __name__ == "__main__":
    main()
