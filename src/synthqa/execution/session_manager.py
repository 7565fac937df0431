"""
Execution Session Manager - Run parsed steps against a real browser.

A run moves through ``created -> acquiring_browser -> running -> finalizing``
and ends ``passed`` or ``failed``. Steps run strictly in order and the run
stops at the first failing step. Each step result is persisted as soon as it
is known, so callers polling the store observe progress.

This is the only component that turns exceptions into status fields:
setup errors and step failures end the run ``failed`` with their message,
while screenshot and video problems are logged and never change the outcome.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from synthqa.config.settings import Settings
from synthqa.exceptions import (
    ExecutionCancelledError,
    NoExecutableStepsError,
    StepFailure,
    SynthQAError,
)
from synthqa.execution.step_executor import StepExecutor
from synthqa.interfaces.browser import BrowserType, IBrowser, IBrowserContext, IPage
from synthqa.models.execution import (
    ExecutionSession,
    ExecutionStatus,
    FailureKind,
    StepResult,
    StepStatus,
)
from synthqa.models.steps import Step
from synthqa.script.parser import parse_script
from synthqa.storage.base import ArtifactStore, ExecutionStore, ScriptStore, new_id
from synthqa.utils.logging import execution_logger

logger = logging.getLogger(__name__)

BrowserFactory = Callable[[], IBrowser]


class RunPhase(str, Enum):
    """Lifecycle of a single run, logged on every transition."""
    CREATED = "created"
    ACQUIRING_BROWSER = "acquiring_browser"
    RUNNING = "running"
    FINALIZING = "finalizing"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class _RunResources:
    """Browser objects owned by one run."""
    browser: Optional[IBrowser] = None
    context: Optional[IBrowserContext] = None
    page: Optional[IPage] = None


@dataclass
class _ActiveRun:
    task: "asyncio.Task[ExecutionSession]"
    cancel: asyncio.Event


def _default_browser_factory(settings: Settings) -> BrowserFactory:
    def factory() -> IBrowser:
        from synthqa.browsers.playwright_browser import PlaywrightBrowser
        return PlaywrightBrowser(default_timeout_ms=settings.browser.timeout_ms)
    return factory


class ExecutionSessionManager:
    """
    Creates, runs and finalizes execution sessions.

    Example:
        >>> manager = ExecutionSessionManager(store, scripts, artifacts, settings)
        >>> session = await manager.start(script_id)   # returns immediately
        >>> final = await manager.wait(session.id)
        >>> final.status
        <ExecutionStatus.PASSED: 'passed'>
    """

    def __init__(
        self,
        store: ExecutionStore,
        scripts: ScriptStore,
        artifacts: ArtifactStore,
        settings: Settings,
        browser_factory: Optional[BrowserFactory] = None,
    ):
        """
        Initialize the manager.

        Args:
            store: Execution record persistence
            scripts: Script lookup for ``start``
            artifacts: Screenshot and video storage
            settings: Application settings
            browser_factory: Builds an unlaunched browser per run
        """
        self.store = store
        self.scripts = scripts
        self.artifacts = artifacts
        self.settings = settings
        self._browser_factory = browser_factory or _default_browser_factory(settings)
        self._runs: Dict[str, _ActiveRun] = {}

    async def start(
        self,
        script_id: str,
        browser: Optional[str] = None,
        headless: Optional[bool] = None,
    ) -> ExecutionSession:
        """
        Trigger a run of a stored script in the background.

        Args:
            script_id: Script to run
            browser: Engine override (chromium, firefox, webkit)
            headless: Headless override

        Returns:
            The ``running`` execution record, before any step executes

        Raises:
            ScriptNotFoundError: If the script does not exist
            StorageError: If the execution record cannot be created
        """
        script = await self.scripts.get(script_id)
        engine = self._engine(browser)
        session = ExecutionSession(id=new_id(), script_id=script.id, browser=engine)
        await self.store.create(session)

        steps = parse_script(script.content)
        cancel = asyncio.Event()
        task = asyncio.create_task(
            self.run(session, steps, headless=headless, cancel=cancel),
            name=f"execution-{session.id}",
        )
        run = _ActiveRun(task=task, cancel=cancel)
        self._runs[session.id] = run
        run.task.add_done_callback(lambda task, sid=session.id: self._on_run_done(sid, task))

        logger.info(f"Execution {session.id} started for script {script.id} on {engine}")
        return session

    async def run_steps(
        self,
        steps: List[Step],
        browser: Optional[str] = None,
        headless: Optional[bool] = None,
        script_id: Optional[str] = None,
    ) -> ExecutionSession:
        """
        Create an execution record for ad-hoc steps and run it to completion.

        Returns:
            The final execution record
        """
        session = ExecutionSession(id=new_id(), script_id=script_id, browser=self._engine(browser))
        await self.store.create(session)
        return await self.run(session, steps, headless=headless)

    async def run(
        self,
        session: ExecutionSession,
        steps: List[Step],
        headless: Optional[bool] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ExecutionSession:
        """
        Drive one run from browser acquisition to the final record.

        Args:
            session: The already-persisted ``running`` record
            steps: Parsed steps, executed in order
            headless: Headless override
            cancel: Set to stop the run before its next step

        Returns:
            The completed execution record
        """
        log = execution_logger(logger, session.id)
        started = time.perf_counter()
        resources = _RunResources()
        status = ExecutionStatus.FAILED
        error: Optional[str] = None
        video_url: Optional[str] = None
        final: Optional[ExecutionSession] = None

        self._transition(log, RunPhase.CREATED)
        try:
            await self._drive(session, steps, resources, headless, cancel, log)
            status = ExecutionStatus.PASSED
        except SynthQAError as e:
            error = e.message
        except asyncio.CancelledError:
            error = ExecutionCancelledError(session.id).message
            raise
        except Exception as e:
            log.exception(f"Unexpected error during execution: {e}")
            error = str(e) or e.__class__.__name__
        finally:
            self._transition(log, RunPhase.FINALIZING)
            video_url = await self._finalize_video(resources, session.id, log)
            await self._release(resources.browser, log)

            duration_ms = int((time.perf_counter() - started) * 1000)
            if status == ExecutionStatus.PASSED:
                self._transition(log, RunPhase.PASSED)
                log.info(f"EXECUTION PASSED ({duration_ms}ms)")
            else:
                self._transition(log, RunPhase.FAILED)
                log.error(f"EXECUTION FAILED ({duration_ms}ms): {error}")
            final = await self.store.complete(session.id, status, duration_ms, error, video_url)

        return final

    async def _drive(
        self,
        session: ExecutionSession,
        steps: List[Step],
        resources: _RunResources,
        headless: Optional[bool],
        cancel: Optional[asyncio.Event],
        log: logging.LoggerAdapter,
    ) -> None:
        if not steps:
            raise NoExecutableStepsError()
        await self.store.set_total_steps(session.id, len(steps))
        log.info(f"Parsed {len(steps)} steps")

        self._transition(log, RunPhase.ACQUIRING_BROWSER)
        resources.browser = self._browser_factory()
        await self._acquire(resources.browser, session.browser, headless, log)
        resources.context = await resources.browser.new_context(**self._context_options())
        resources.page = await resources.context.new_page()
        log.info("Browser ready")

        self._transition(log, RunPhase.RUNNING)
        executor = StepExecutor(timeout_ms=self.settings.browser.timeout_ms)
        for number, step in enumerate(steps, start=1):
            if cancel is not None and cancel.is_set():
                raise ExecutionCancelledError(session.id)
            log.info(f"Step {number}/{len(steps)}: {step.description}")
            await self._run_step(executor, resources.page, session.id, number, step, log)

        if executor.skipped_assertions:
            log.warning(f"{executor.skipped_assertions} assertion(s) were not recognized and not checked")

    async def _run_step(
        self,
        executor: StepExecutor,
        page: IPage,
        execution_id: str,
        number: int,
        step: Step,
        log: logging.LoggerAdapter,
    ) -> None:
        started = time.perf_counter()
        try:
            await executor.execute(step, page)
        except Exception as e:
            duration_ms = int((time.perf_counter() - started) * 1000)
            message = e.message if isinstance(e, SynthQAError) else (str(e) or e.__class__.__name__)
            kind = FailureKind(e.failure_kind) if isinstance(e, StepFailure) else FailureKind.ERROR
            log.error(f"Step {number} FAILED: {message}")

            screenshot_url = await self._capture(page, execution_id, f"step-{number}-error.png", log)
            await self.store.append_step_result(execution_id, StepResult(
                step_number=number,
                description=step.description,
                status=StepStatus.FAILED,
                duration_ms=duration_ms,
                screenshot_url=screenshot_url,
                error_message=message,
                failure_kind=kind,
            ))
            raise

        if self.settings.execution.settle_ms:
            await asyncio.sleep(self.settings.execution.settle_ms / 1000)
        duration_ms = int((time.perf_counter() - started) * 1000)

        screenshot_url = await self._capture(page, execution_id, f"step-{number}.png", log)
        await self.store.append_step_result(execution_id, StepResult(
            step_number=number,
            description=step.description,
            status=StepStatus.PASSED,
            duration_ms=duration_ms,
            screenshot_url=screenshot_url,
        ))
        log.info(f"Step {number} PASSED ({duration_ms}ms)")

    async def _acquire(
        self,
        browser: IBrowser,
        engine: str,
        headless: Optional[bool],
        log: logging.LoggerAdapter,
    ) -> None:
        """Launch or connect ``browser``; the caller owns releasing it."""
        config = self.settings.browser

        if config.remote_endpoint:
            if engine != BrowserType.CHROMIUM.value:
                log.warning(f"Remote browser is Chromium; requested engine '{engine}' is ignored")
            log.info("Connecting to remote browser...")
            await browser.connect(self._remote_endpoint(), timeout_ms=config.connect_timeout_ms)
            log.info("Connected to remote browser")
        else:
            use_headless = config.headless if headless is None else headless
            log.info(f"Using local {engine} browser (headless={use_headless})")
            await browser.launch(
                headless=use_headless,
                browser_type=BrowserType(engine),
                timeout=config.launch_timeout_ms,
            )

    def _remote_endpoint(self) -> str:
        config = self.settings.browser
        if config.remote_token is None:
            return config.remote_endpoint
        parts = urlsplit(config.remote_endpoint)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query.append(("token", config.remote_token.get_secret_value()))
        return urlunsplit(parts._replace(query=urlencode(query)))

    def _context_options(self) -> Dict[str, Any]:
        config = self.settings.browser
        viewport = {"width": config.viewport_width, "height": config.viewport_height}
        options: Dict[str, Any] = {"viewport": viewport}
        if config.user_agent:
            options["user_agent"] = config.user_agent
        if config.record_video:
            options["record_video_dir"] = str(self.artifacts.video_dir)
            options["record_video_size"] = viewport
        return options

    async def _capture(
        self,
        page: IPage,
        execution_id: str,
        name: str,
        log: logging.LoggerAdapter,
    ) -> Optional[str]:
        """Screenshot the page and store it; None if either part fails."""
        try:
            data = await page.screenshot()
            return await self.artifacts.save_screenshot(execution_id, name, data)
        except Exception as e:
            log.error(f"Failed to capture screenshot {name}: {e}")
            return None

    async def _finalize_video(
        self,
        resources: _RunResources,
        execution_id: str,
        log: logging.LoggerAdapter,
    ) -> Optional[str]:
        if resources.context is None:
            return None

        # Closing the context flushes the video file
        try:
            await resources.context.close()
        except Exception as e:
            log.warning(f"Error closing browser context: {e}")

        if resources.page is None or not self.settings.browser.record_video:
            return None

        try:
            video_path = await resources.page.video_path()
            if not video_path:
                return None
            log.info("Uploading video...")
            url = await self.artifacts.upload_video(execution_id, Path(video_path))
            log.info("Video uploaded")
            return url
        except Exception as e:
            log.error(f"Video upload failed: {e}")
            return None

    async def _release(self, browser: Optional[IBrowser], log: logging.LoggerAdapter) -> None:
        if browser is None:
            return
        try:
            await browser.close()
            log.info("Browser closed")
        except Exception as e:
            log.error(f"Error closing browser: {e}")

    async def cancel(self, execution_id: str) -> bool:
        """
        Request cancellation of a running execution.

        The run stops before its next step and ends ``failed`` with
        ``Execution cancelled``. The step in progress is allowed to finish.

        Returns:
            True if a running execution was signalled
        """
        run = self._runs.get(execution_id)
        if run is None or run.task.done():
            return False
        run.cancel.set()
        logger.info(f"Cancellation requested for execution {execution_id}")
        return True

    async def wait(self, execution_id: str) -> ExecutionSession:
        """Wait for a background run to finish and return its record."""
        run = self._runs.get(execution_id)
        if run is not None:
            await asyncio.shield(run.task)
        return await self.store.get(execution_id)

    def is_running(self, execution_id: str) -> bool:
        run = self._runs.get(execution_id)
        return run is not None and not run.task.done()

    async def shutdown(self) -> None:
        """Cancel every background run and wait for them to finalize."""
        tasks = [run.task for run in self._runs.values() if not run.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _engine(self, browser: Optional[str]) -> str:
        return BrowserType(browser or self.settings.browser.engine).value

    def _on_run_done(self, execution_id: str, task: "asyncio.Task[ExecutionSession]") -> None:
        self._runs.pop(execution_id, None)
        if task.cancelled():
            logger.warning(f"Execution {execution_id} task was cancelled")
        elif task.exception() is not None:
            logger.error(f"Execution {execution_id} could not be finalized: {task.exception()}")

    @staticmethod
    def _transition(log: logging.LoggerAdapter, phase: RunPhase) -> None:
        log.info(f"-> {phase.value}")
