"""Command-line setup for Google authentication.

Usage:
    vibe-logger-auth setup                  # Authorize and store tokens
    vibe-logger-auth reset [--credentials]  # Remove stored tokens
    vibe-logger-auth test                   # Check the stored setup
"""

import argparse
import asyncio
import logging
import sys
import webbrowser
from collections.abc import Callable
from pathlib import Path

from .config import settings
from .core.credential_store import CredentialStore
from .core.errors import AuthError, ConfigError, VibeLoggerError
from .core.token_manager import TokenLifecycleManager

InputFunc = Callable[[str], str]


def _make_store(config_dir: Path | None) -> CredentialStore:
    if config_dir is None:
        return CredentialStore()
    return CredentialStore(
        credentials_path=config_dir / settings.credentials_filename,
        tokens_path=config_dir / settings.tokens_filename,
    )


def _print_error(error: VibeLoggerError) -> None:
    print(f"❌ {error.message}")
    if error.remediation:
        print(f"   {error.remediation}")


async def run_setup(
    store: CredentialStore, input_func: InputFunc = input, open_browser: bool = True
) -> int:
    """Walk through the consent screen and store the resulting tokens."""
    print("🚀 Vibe Logger Authentication Setup\n")

    manager = TokenLifecycleManager(store)
    try:
        credential = manager.load_credential()
        print(f"✅ Credentials file found at: {store.credentials_path}")
        print(f"   Client ID: {credential.client_id[:20]}...\n")

        authorization_url = manager.build_authorization_url()
        if open_browser and webbrowser.open(authorization_url):
            print("✅ Browser opened for authorization")
        else:
            print("Open this URL in your browser:")
        print(f"   {authorization_url}\n")

        code = input_func("Enter authorization code: ")
        token_set = await manager.exchange_authorization_code(code)
    except VibeLoggerError as e:
        _print_error(e)
        return 1
    finally:
        await manager.aclose()

    print(f"\n✅ Authorization successful. Tokens saved to: {store.tokens_path}")
    if token_set.refresh_token is None:
        print("⚠️  No refresh token was issued; you will need to re-run setup when it expires.")
    return 0


def run_reset(
    store: CredentialStore,
    credentials: bool = False,
    force: bool = False,
    input_func: InputFunc = input,
) -> int:
    """Remove stored tokens, and the credential file if asked."""
    print("🔄 Vibe Logger Authentication Reset\n")

    if not force:
        if credentials:
            print("⚠️  This will also remove your credentials file.")
            print("   You will need to download it again from Google Cloud Console.\n")
        answer = input_func("Continue with reset? (y/N): ").strip().lower()
        if answer not in ("y", "yes"):
            print("Reset cancelled.")
            return 0

    try:
        if store.clear():
            print(f"✅ Tokens removed: {store.tokens_path}")
        else:
            print("ℹ️  No tokens file found (already clean)")

        if credentials:
            if store.remove_credentials():
                print(f"✅ Credentials removed: {store.credentials_path}")
            else:
                print("ℹ️  No credentials file found (already clean)")
    except OSError as e:
        print(f"❌ Reset failed: {e}")
        return 1

    print("\nRun 'vibe-logger-auth setup' to re-authenticate.")
    return 0


async def run_test(store: CredentialStore) -> int:
    """Check that the credential and token files work, refreshing if needed."""
    print("🧪 Vibe Logger Authentication Test\n")

    for label, path, exists in (
        ("Credentials file", store.credentials_path, store.credentials_exist()),
        ("Tokens file", store.tokens_path, store.token_exists()),
    ):
        print(f"{'✅' if exists else '❌'} {label}: {path}")

    manager = TokenLifecycleManager(store)
    try:
        await manager.initialize()
        await manager.get_valid_credential()
    except (ConfigError, AuthError) as e:
        _print_error(e)
        return 1
    finally:
        await manager.aclose()

    print(f"✅ Authenticated (state: {manager.state.value})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibe-logger-auth", description="Manage Google authentication for Vibe Logger"
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help=f"Directory with the credential and token files (default: {settings.config_dir})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup = subparsers.add_parser("setup", help="Authorize and store tokens")
    setup.add_argument(
        "--no-browser", action="store_true", help="Print the URL instead of opening a browser"
    )

    reset = subparsers.add_parser("reset", help="Remove stored tokens")
    reset.add_argument(
        "-c", "--credentials", action="store_true", help="Also remove the credentials file"
    )
    reset.add_argument("-f", "--force", action="store_true", help="Skip confirmation prompt")

    subparsers.add_parser("test", help="Check the current authentication setup")
    return parser


def main(argv: list[str] | None = None, input_func: InputFunc = input) -> int:
    """Entry point for ``vibe-logger-auth``."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    args = build_parser().parse_args(argv)
    store = _make_store(args.config_dir)

    if args.command == "setup":
        return asyncio.run(run_setup(store, input_func, open_browser=not args.no_browser))
    if args.command == "reset":
        return run_reset(store, args.credentials, args.force, input_func)
    return asyncio.run(run_test(store))


if __name__ == "__main__":
    sys.exit(main())
