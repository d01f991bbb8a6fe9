"""GitHub token acquisition."""

from __future__ import annotations

import asyncio
import os

from roadmap_sync.github.exceptions import TokenError
from roadmap_sync.logging import get_logger

logger = get_logger("github.auth")

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GH_TOKEN_COMMAND = ("gh", "auth", "token")


class TokenProvider:
    """Provides a GitHub token, acquiring it at most once at a time.

    The token comes from an explicit value, the GITHUB_TOKEN environment
    variable, or ``gh auth token``, in that order. Concurrent first callers
    share a single acquisition. A failed acquisition is not remembered, so
    the next caller tries again.
    """

    def __init__(
        self,
        token: str | None = None,
        command: tuple[str, ...] = GH_TOKEN_COMMAND,
    ) -> None:
        self.command = command
        self._token = token
        self._pending: asyncio.Task[str] | None = None

    async def get_token(self) -> str:
        """Return the token, acquiring it on first use.

        Raises:
            TokenError: If no token can be obtained.
        """
        if self._token is not None:
            return self._token

        if self._pending is None:
            self._pending = asyncio.create_task(self._acquire())
        pending = self._pending

        try:
            token = await asyncio.shield(pending)
        except Exception:
            if self._pending is pending:
                self._pending = None
            raise

        self._token = token
        return token

    async def _acquire(self) -> str:
        token = os.environ.get(GITHUB_TOKEN_ENV, "").strip()
        if token:
            logger.debug("Using GitHub token from %s", GITHUB_TOKEN_ENV)
            return token

        logger.debug("Requesting GitHub token via %s", " ".join(self.command))
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise TokenError(f"Failed to retrieve GitHub auth token via gh: {e}") from e

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise TokenError(
                f"Failed to retrieve GitHub auth token via gh: {message or process.returncode}"
            )

        try:
            token = stdout.decode("utf-8").strip()
        except UnicodeDecodeError as e:
            raise TokenError(f"Failed to retrieve GitHub auth token via gh: {e}") from e

        if not token:
            raise TokenError(
                "Failed to retrieve GitHub auth token via gh: GitHub authentication token "
                "is empty. Run `gh auth login` to configure credentials."
            )
        return token
