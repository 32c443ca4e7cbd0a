#!/usr/bin/env python3
"""Check Jira credentials stored in the configuration file."""

import sys
import asyncio

from sheetjira.errors import NotConfigured, AuthFailed, InvalidMapping
from sheetjira.integrations.jira_client import JiraClient
from sheetjira.models.config import AppSettings
from sheetjira.utils.config_store import ConfigStore


async def check_auth_status() -> bool:
    """Check if the stored credentials are accepted by Jira."""
    settings = AppSettings()

    try:
        config = ConfigStore(settings.config_path).load()
    except InvalidMapping as e:
        print(f"Configuration error: {e}")
        return False

    print("Checking Jira authentication status...")
    print(f"Config file: {settings.config_path}")
    print(f"Jira URL: {config.jira_url or '(not set)'}")
    print(f"Email: {config.jira_email or '(not set)'}")
    print(f"Has API Token: {bool(config.jira_api_token)}")

    async with JiraClient.from_config(config, timeout=settings.http_timeout) as client:
        try:
            user = await client.test_auth()
        except NotConfigured as e:
            print(f"\n{e}")
            return False
        except AuthFailed as e:
            print(f"\nAuthentication failed: {e}")
            if e.status_code in (401, 403):
                print("Check the email and API token in the settings.")
            return False

    print(f"\nAuthenticated as {user.display_name}.")
    return True


async def main():
    """Main function."""
    print("Jira Authentication Status Checker\n")

    is_authenticated = await check_auth_status()

    if is_authenticated:
        print("\n✅ Ready to create Jira tickets!")
    else:
        print("\n❌ Fix the connection settings before creating tickets.")
    return is_authenticated


if __name__ == "__main__":
    try:
        result = asyncio.run(main())
        sys.exit(0 if result else 1)
    except KeyboardInterrupt:
        print("\nCancelled by user")
        sys.exit(1)
