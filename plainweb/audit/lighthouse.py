# plainweb/audit/lighthouse.py
"""
Audit-running collaborators. Both produce a raw Lighthouse result ("lhr").

- LighthouseRunner: local headless Chrome + Lighthouse CLI. The browser is a
  scoped resource: it is killed on every exit path.
- PageSpeedRunner: Google PageSpeed Insights v5 API (no local browser).

Neither retries; any failure surfaces as AuditRunFailed.
"""
import asyncio
import json
import logging
import socket
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import aiohttp
from aiohttp import ClientTimeout
from aiohttp.client_exceptions import ClientError

from ..errors import AuditRunFailed
from ..settings import Settings

PAGESPEED_API = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
DEFAULT_CATEGORIES = ("accessibility",)

logger = logging.getLogger(__name__)


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
    await proc.wait()


async def _wait_for_devtools(port: int, timeout: float) -> None:
    """Poll Chrome's /json/version until it answers."""
    url = f"http://127.0.0.1:{port}/json/version"
    deadline = time.monotonic() + timeout
    async with aiohttp.ClientSession(timeout=ClientTimeout(total=2.0)) as session:
        while time.monotonic() < deadline:
            try:
                async with session.get(url) as resp:
                    if resp.status == 200:
                        return
            except (ClientError, asyncio.TimeoutError):
                pass
            await asyncio.sleep(0.25)
    raise AuditRunFailed(f"Chrome did not expose DevTools on port {port} within {timeout:.0f}s")


@asynccontextmanager
async def launch_chrome(
    chrome_path: str,
    flags: Sequence[str],
    *,
    startup_timeout: float = 15.0,
) -> AsyncIterator[int]:
    """
    Start headless Chrome and yield its remote-debugging port.

    The process is killed when the block exits, however it exits.
    """
    port = _free_port()
    try:
        proc = await asyncio.create_subprocess_exec(
            chrome_path,
            f"--remote-debugging-port={port}",
            *flags,
            "about:blank",
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        logger.error("Failed to launch chrome (%s): %s", chrome_path, e)
        raise AuditRunFailed("Failed to launch browser environment") from e

    logger.info("Chrome started pid=%s port=%s", proc.pid, port)
    try:
        await _wait_for_devtools(port, startup_timeout)
        yield port
    finally:
        await _kill(proc)
        logger.info("Chrome released pid=%s", proc.pid)


class LighthouseRunner:
    """Runs the Lighthouse CLI against a per-request Chrome instance."""

    def __init__(
        self,
        chrome_path: str = "google-chrome",
        lighthouse_bin: str = "lighthouse",
        chrome_flags: Optional[Sequence[str]] = None,
        timeout: float = 120.0,
        only_categories: Sequence[str] = DEFAULT_CATEGORIES,
    ):
        self.chrome_path = chrome_path
        self.lighthouse_bin = lighthouse_bin
        self.chrome_flags = list(chrome_flags or ["--headless", "--no-sandbox", "--disable-gpu"])
        self.timeout = timeout
        self.only_categories = list(only_categories)

    def _command(self, url: str, port: int) -> List[str]:
        cmd = [
            self.lighthouse_bin,
            url,
            f"--port={port}",
            "--output=json",
            "--output-path=stdout",
            "--quiet",
        ]
        if self.only_categories:
            cmd.append(f"--only-categories={','.join(self.only_categories)}")
        return cmd

    async def _run_lighthouse(self, url: str, port: int) -> Dict[str, Any]:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command(url, port),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise AuditRunFailed(f"Failed to start Lighthouse ({self.lighthouse_bin}): {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise AuditRunFailed(f"Lighthouse timed out after {self.timeout:.0f}s") from e
        finally:
            await _kill(proc)

        if proc.returncode != 0:
            tail = (stderr or b"").decode("utf-8", "replace")[-500:]
            logger.error("Lighthouse exited %s for %s: %s", proc.returncode, url, tail)
            raise AuditRunFailed(f"Lighthouse audit failed (exit {proc.returncode})")

        try:
            lhr = json.loads(stdout or b"")
        except ValueError as e:
            raise AuditRunFailed("Lighthouse produced invalid JSON") from e
        if not isinstance(lhr, dict) or not lhr:
            raise AuditRunFailed("No lighthouse report generated")
        return lhr

    async def __call__(self, url: str) -> Dict[str, Any]:
        started = time.perf_counter()
        async with launch_chrome(self.chrome_path, self.chrome_flags) as port:
            lhr = await self._run_lighthouse(url, port)
        logger.info("Lighthouse finished for %s in %.1fs", url, time.perf_counter() - started)
        return lhr


class PageSpeedRunner:
    """Fetches the Lighthouse result from PageSpeed Insights in a single request."""

    def __init__(
        self,
        api_key: str = "",
        strategy: str = "mobile",
        timeout: float = 120.0,
        only_categories: Sequence[str] = DEFAULT_CATEGORIES,
    ):
        self.api_key = api_key
        self.strategy = strategy
        self.timeout = timeout
        self.only_categories = list(only_categories)

    def _params(self, url: str) -> List[tuple]:
        params = [("url", url), ("strategy", self.strategy)]
        params += [("category", c) for c in self.only_categories]
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    async def __call__(self, url: str) -> Dict[str, Any]:
        client_timeout = ClientTimeout(total=self.timeout, sock_connect=min(10.0, self.timeout))
        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.get(PAGESPEED_API, params=self._params(url)) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        logger.error("[PSI] HTTP %s for %s. Body: %s", resp.status, url, text[:500])
                        raise AuditRunFailed(f"PageSpeed Insights returned HTTP {resp.status}")
                    data = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise AuditRunFailed(f"PageSpeed Insights timed out after {self.timeout:.0f}s") from e
        except ClientError as e:
            raise AuditRunFailed(f"PageSpeed Insights request failed: {e}") from e
        except ValueError as e:
            raise AuditRunFailed("PageSpeed Insights returned invalid JSON") from e

        if not isinstance(data, dict):
            raise AuditRunFailed("PageSpeed Insights returned an unexpected payload")
        lhr = data.get("lighthouseResult")
        if not isinstance(lhr, dict) or not lhr:
            raise AuditRunFailed("No lighthouse report generated")
        return lhr


def build_audit_runner(settings: Settings):
    if settings.AUDIT_BACKEND == "pagespeed":
        return PageSpeedRunner(settings.PSI_API_KEY, settings.PSI_STRATEGY, settings.AUDIT_TIMEOUT)
    return LighthouseRunner(
        chrome_path=settings.CHROME_PATH,
        lighthouse_bin=settings.LIGHTHOUSE_BIN,
        chrome_flags=settings.CHROME_FLAGS,
        timeout=settings.AUDIT_TIMEOUT,
    )
