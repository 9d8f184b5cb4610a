"""Resolve the operator name used in document titles."""

import asyncio
import getpass
import logging

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR = "developer"

# Cache the resolved name to avoid repeated subprocess calls
_operator_cache: str | None = None


def _normalize(name: str) -> str:
    return "-".join(name.strip().lower().split())


async def _get_git_user_name() -> str | None:
    """Read ``git config user.name``, or None if git is unavailable or unset."""
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            "config",
            "user.name",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=2.0)
    except asyncio.TimeoutError:
        logger.debug("git config timed out (2s)")
        return None
    except FileNotFoundError:
        logger.debug("git not found in PATH")
        return None

    if process.returncode == 0 and stdout.strip():
        return stdout.decode().strip()

    if stderr:
        logger.debug(f"git config failed: {stderr.decode().strip()}")
    return None


async def resolve_operator_identity(refresh: bool = False) -> str:
    """Get the operator name: settings override, then git user.name, then $USER.

    Falls back to 'developer'. The result is lower-cased with whitespace
    replaced by hyphens.
    """
    global _operator_cache

    if _operator_cache is not None and not refresh:
        return _operator_cache

    name = settings.operator_name or await _get_git_user_name()
    if not name:
        try:
            name = getpass.getuser()
        except (KeyError, OSError):
            name = None

    _operator_cache = _normalize(name) if name and name.strip() else DEFAULT_OPERATOR
    logger.info(f"Using operator name: {_operator_cache}")
    return _operator_cache
