"""
Main entry point for Tag Watcher.

Runs the main async loop that polls repositories and sends notifications.
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass, field
from urllib.parse import urlparse

import coloredlogs

from tag_watcher.config import AppConfig, load_config, load_config_from_env
from tag_watcher.exceptions import ConfigError, PersistenceError, TagWatcherError
from tag_watcher.github import GitHubClient
from tag_watcher.reconcile import Changed, ReconcileOutcome, Reconciler
from tag_watcher.resolver import VersionResolver
from tag_watcher.storage import StateStore
from tag_watcher.telegram import TelegramNotifier

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


@dataclass
class PassSummary:
    """
    Result of one pass over all repositories.

    Attributes
    ----------
    checked : int
        Repositories checked without error.
    changed : int
        Repositories whose tag changed.
    failed : list[str]
        Repositories whose check failed.
    """

    checked: int = 0
    changed: int = 0
    failed: list[str] = field(default_factory=list)


class TagWatcher:
    """
    Main Tag Watcher application.

    Coordinates version resolution, reconciliation, storage, and notifications.
    """

    def __init__(self, config: AppConfig):
        """
        Initialize the tag watcher.

        Parameters
        ----------
        config : AppConfig
            Validated application configuration.
        """
        self.config = config
        self.store: StateStore | None = None
        self.client: GitHubClient | None = None
        self.resolver: VersionResolver | None = None
        self.notifier: TelegramNotifier | None = None
        self.reconciler: Reconciler | None = None
        self.state: dict[str, str] = {}
        self._saved_state: dict[str, str] | None = None
        self._save_failures = 0
        self._stop_event = asyncio.Event()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    async def start(self, once: bool = False) -> None:
        """
        Start the tag watcher.

        Parameters
        ----------
        once : bool
            If True, run a single pass and return.
        """
        logger.info("Starting Tag Watcher")

        self.store = StateStore(self.config.watcher.state_path)
        self.state = self.store.load_or_empty()
        self._saved_state = dict(self.state)

        github = self.config.github
        if github.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(github.proxy))
        if not github.token:
            logger.warning("No GitHub token configured, API rate limits will be low")

        self.client = GitHubClient(
            api_url=github.api_url,
            token=github.token,
            timeout=github.request_timeout,
            max_retries=github.max_retries,
            user_agent=github.user_agent,
            proxy_url=github.proxy,
        )
        self.resolver = VersionResolver(self.client)
        self.notifier = TelegramNotifier(self.config.telegram, proxy_url=github.proxy)
        self.reconciler = Reconciler(
            self.notifier,
            silent_first_run=self.config.watcher.silent_first_run,
        )

        if not await self.notifier.test_connection():
            logger.error("Invalid Telegram credentials, exiting")
            await self.stop()
            sys.exit(1)

        logger.info(
            "Tag Watcher started with %d repositor%s: %s",
            len(self.config.repositories),
            "y" if len(self.config.repositories) == 1 else "ies",
            ", ".join(self.config.repositories),
        )

        await self.run(once=once)

    async def run(self, once: bool = False) -> None:
        """
        Poll all repositories at a fixed interval until stopped.

        Parameters
        ----------
        once : bool
            If True, run a single pass and return.
        """
        interval = self.config.watcher.poll_interval

        while not self.stopping:
            summary = await self.run_pass()
            logger.info(
                "Pass complete: %d checked, %d changed, %d failed",
                summary.checked,
                summary.changed,
                len(summary.failed),
            )
            if once or self.stopping:
                break

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def run_pass(self) -> PassSummary:
        """
        Check every repository once, then persist the state.

        A failing repository is logged and skipped; it never prevents
        the others from being checked.

        Returns
        -------
        PassSummary
            Counts for this pass.
        """
        summary = PassSummary()

        for repo in self.config.repositories:
            if self.stopping:
                logger.info("Shutdown requested, ending pass early")
                break

            try:
                outcome = await self.check_repo(repo)
            except asyncio.CancelledError:
                raise
            except TagWatcherError as e:
                logger.error("Error checking repository '%s': %s", repo, e)
                summary.failed.append(repo)
                continue
            except Exception as e:
                logger.exception("Unexpected error checking repository '%s': %s", repo, e)
                summary.failed.append(repo)
                continue

            summary.checked += 1
            if isinstance(outcome, Changed):
                summary.changed += 1

        self.persist()
        return summary

    async def check_repo(self, repo: str) -> ReconcileOutcome:
        """
        Resolve a repository's latest version and reconcile it.

        Parameters
        ----------
        repo : str
            Repository identifier.

        Returns
        -------
        ReconcileOutcome
            Whether the version changed.
        """
        if not self.resolver or not self.reconciler:
            raise RuntimeError("Components not initialized")

        logger.debug("Checking repository: %s", repo)
        resolution = await self.resolver.resolve(repo)
        return await self.reconciler.reconcile(repo, resolution, self.state)

    def persist(self) -> bool:
        """
        Save the state record.

        Failures are logged and the in-memory state is kept, so the next
        pass retries the save.

        Returns
        -------
        bool
            True if the state was saved.
        """
        if not self.store:
            raise RuntimeError("Components not initialized")

        try:
            self.store.save(self.state)
        except PersistenceError as e:
            self._save_failures += 1
            logger.error(
                "State save failed (%d consecutive failure%s): %s",
                self._save_failures,
                "" if self._save_failures == 1 else "s",
                e,
            )
            return False

        if self._save_failures:
            logger.info("State saved again after %d failed attempt(s)", self._save_failures)
        self._save_failures = 0
        self._saved_state = dict(self.state)
        return True

    def request_stop(self) -> None:
        """Ask the loop to stop after the repository being checked."""
        self._stop_event.set()

    async def stop(self) -> None:
        """Stop the tag watcher gracefully."""
        logger.info("Stopping Tag Watcher")
        self.request_stop()

        if self.store and self.state != self._saved_state:
            self.persist()

        if self.client:
            await self.client.close()
        if self.notifier:
            await self.notifier.close()

        logger.info("Tag Watcher stopped")


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="GitHub release/tag watcher with Telegram notifications",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to YAML configuration file (default: read environment variables)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single pass and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        if args.config:
            config = load_config(args.config)
        else:
            config = load_config_from_env()
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    watcher = TagWatcher(config)

    # Finish the current repository, save, then exit
    def signal_handler():
        logger.info("Received shutdown signal")
        watcher.request_stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(watcher.start(once=args.once))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(watcher.stop())
        loop.close()


if __name__ == "__main__":
    main()
