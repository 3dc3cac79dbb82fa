import asyncio
import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from firecrawl_tool.errors import JobTimeoutError, RemoteJobFailure
from firecrawl_tool.models import (
    CrawlStatusResponse,
    JobHandle,
    JobStatus,
    PollingConfig,
    PollState,
)

DEFAULT_FAILURE_MESSAGE = "Crawl job failed: Unknown error"


class PollPhase(str, Enum):
    started = "started"
    polling = "polling"
    completed = "completed"
    failed = "failed"
    timed_out = "timed_out"


def describe_wait(seconds: float) -> str:
    """Render the polling bound the way it appears in timeout messages."""
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{seconds:g} seconds"


class CrawlJobPoller:
    """Waits for a crawl job to reach a terminal status.

    Each iteration sleeps for ``poll_interval`` and then issues exactly one
    status query. ``completed`` returns that status response unchanged,
    ``failed`` raises :class:`RemoteJobFailure`, and anything else counts as an
    attempt. After ``max_attempts`` non-terminal responses the poller raises
    :class:`JobTimeoutError`. Transport errors from ``fetch_status`` are not
    retried.
    """

    def __init__(
        self,
        fetch_status: Callable[[str], Awaitable[dict]],
        config: Optional[PollingConfig] = None,
        on_status_change: Optional[Callable[[CrawlStatusResponse], Any]] = None,
    ):
        self.fetch_status = fetch_status
        self.config = config or PollingConfig()
        self.logger = logger
        self.on_status_change = on_status_change

    def _now(self) -> float:
        return asyncio.get_running_loop().time()

    def _to_status_response(self, state: PollState, data: dict) -> CrawlStatusResponse:
        return CrawlStatusResponse(
            status=data.get("status"),
            raw_response=data,
            elapsed_time=state.elapsed(self._now()),
        )

    async def _handle_status_change(
        self, status_response: CrawlStatusResponse, last_status: Optional[str]
    ) -> None:
        """Invoke the status change callback if the status has changed"""
        if last_status != status_response.status and self.on_status_change is not None:
            self.logger.debug(f"Crawl job status changed to {status_response.status}")
            result = self.on_status_change(status_response)
            if inspect.isawaitable(result):
                await result

    async def _wait_before_next_poll(self, state: PollState) -> None:
        self.logger.debug(
            f"Crawl job {state.job_id}: waiting {self.config.poll_interval:.2f}s "
            f"before poll {state.attempt_count + 1}/{self.config.max_attempts}"
        )
        await asyncio.sleep(self.config.poll_interval)

    def _transition(self, state: PollState, phase: PollPhase) -> None:
        self.logger.debug(
            f"Crawl job {state.job_id} -> {phase.value} after {state.attempt_count} attempts"
        )

    async def poll_until_complete(self, handle: JobHandle) -> dict:
        """Poll the crawl status endpoint until completion, failure or the attempt bound"""
        state = PollState(job_id=handle.id, started_at=self._now())
        self._transition(state, PollPhase.started)
        self._transition(state, PollPhase.polling)
        last_status = None

        while state.attempt_count < self.config.max_attempts:
            await self._wait_before_next_poll(state)
            data = await self.fetch_status(state.job_id)
            status_response = self._to_status_response(state, data)

            await self._handle_status_change(status_response, last_status)
            last_status = status_response.status

            if status_response.status == JobStatus.completed.value:
                self._transition(state, PollPhase.completed)
                self.logger.info(
                    f"Crawl job {handle.id} completed in {status_response.elapsed_time:.1f}s"
                )
                return data

            if status_response.status == JobStatus.failed.value:
                self._transition(state, PollPhase.failed)
                remote_error = data.get("error")
                self.logger.info(f"Crawl job {handle.id} failed: {remote_error}")
                raise RemoteJobFailure(
                    str(remote_error) if remote_error else DEFAULT_FAILURE_MESSAGE,
                    job_id=handle.id,
                    remote_error=remote_error,
                )

            state.attempt_count += 1

        self._transition(state, PollPhase.timed_out)
        wait = describe_wait(self.config.poll_interval * self.config.max_attempts)
        raise JobTimeoutError(
            f"Crawl job timed out after {wait}",
            job_id=handle.id,
            attempts=state.attempt_count,
        )
