# Path: notion_backup/engine/completion_watcher.py
"""
Completion Watcher

Waits for a submitted export to finish and returns its download URL.

Two correlation strategies:
- Task status: when the submission returned a task id, poll getTasks
  for that id. Failures are reported explicitly by the service.
- Activity feed: otherwise poll the shared notification feed and take
  the first 'export-completed' record whose start time is at or after
  the job's watermark. Correct only while jobs are submitted strictly
  one at a time.

Every poll sleeps the poll interval first, then queries once. Polling
is bounded by an attempt cap and/or a deadline (0 disables either);
exhaustion raises ExportTimeoutError. Query errors are never retried
here and propagate immediately.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Iterable, Optional
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_any,
    stop_never,
)

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.errors import (
    ExportFailedError,
    ExportTimeoutError,
    NotionAPIError,
)
from notion_backup.core.logger import get_logger
from notion_backup.engine.api_client import NotionAPIClient
from notion_backup.engine.result import ActivityRecord, ExportJob
from notion_backup.constants import (
    ACTIVITY_EXPORT_COMPLETED,
    ENDPOINT_GET_TASKS,
    ENDPOINT_NOTIFICATION_LOG,
    FEED_PAGE_SIZE,
    FEED_READ_STATE,
    FEED_VARIANT,
    TASK_STATE_FAILURE,
    TASK_STATE_SUCCESS,
    LOG_INPUT,
    LOG_PROCESS,
    LOG_OUTPUT,
)

logger = get_logger(__name__, 'engine')


def parse_activities(data: dict[str, Any]) -> list[ActivityRecord]:
    """
    Parse the activity records of a getNotificationLogV2 response.

    Args:
        data: Parsed JSON response

    Returns:
        Records in response order; unparseable entries are skipped
    """
    record_map = data.get('recordMap') or {}
    activities = record_map.get('activity') or {}

    records = []
    for activity_id, entry in activities.items():
        record = ActivityRecord.from_feed_entry(activity_id, entry)
        if record is not None:
            records.append(record)
    return records


def find_export_activity(
    records: Iterable[ActivityRecord],
    watermark: int
) -> Optional[ActivityRecord]:
    """
    Select the completion record of an export submitted at `watermark`.

    Args:
        records: Feed records in feed order
        watermark: Epoch milliseconds recorded before submission

    Returns:
        The earliest-indexed 'export-completed' record with
        start_time >= watermark, or None
    """
    for record in records:
        if record.type == ACTIVITY_EXPORT_COMPLETED and record.start_time >= watermark:
            return record
    return None


class CompletionWatcher:
    """
    Polls until an export job completes.

    Example:
        watcher = CompletionWatcher(api_client)
        url = await watcher.wait_for_completion(job)
    """

    def __init__(
        self,
        api_client: NotionAPIClient,
        config: Optional[ConfigLoader] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        max_wait: Optional[float] = None,
        use_task_status: Optional[bool] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize watcher.

        Args:
            api_client: Client used for feed / task queries
            config: Optional ConfigLoader instance
            poll_interval: Seconds slept before each poll (from config if None)
            max_attempts: Poll cap, 0 = none (from config if None)
            max_wait: Deadline in seconds, 0 = none (from config if None)
            use_task_status: Prefer task-id correlation (from config if None)
            sleep: Async sleep function
        """
        self.api_client = api_client
        self.config = config if config else ConfigLoader()

        self.space_id = self.config.get('notion_space_id')
        self.poll_interval = poll_interval if poll_interval is not None else \
            self.config.get('poll_interval')
        self.max_attempts = max_attempts if max_attempts is not None else \
            self.config.get('max_poll_attempts', 0)
        self.max_wait = max_wait if max_wait is not None else \
            self.config.get('max_wait_seconds', 0)
        self.use_task_status = use_task_status if use_task_status is not None else \
            self.config.get('use_task_status', True)

        self._sleep = sleep if sleep else asyncio.sleep

    def build_feed_query(self) -> dict[str, Any]:
        """Request body for one page of recent activity."""
        return {
            'spaceId': self.space_id,
            'size': FEED_PAGE_SIZE,
            'type': FEED_READ_STATE,
            'variant': FEED_VARIANT,
        }

    async def wait_for_completion(self, job: ExportJob) -> str:
        """
        Wait until the job's export is available.

        Args:
            job: Submitted export job

        Returns:
            Download URL of the export archive

        Raises:
            ExportTimeoutError: Attempt cap or deadline reached
            ExportFailedError: Task status reported failure
            NotionAPIError: A query failed or a completion carried no link
        """
        if self.use_task_status and job.task_id:
            strategy = 'task status'
            poll = self._poll_task
        else:
            strategy = 'activity feed'
            poll = self._poll_feed

        logger.info(
            f"{LOG_INPUT} Waiting for {job.format.value} export via {strategy} "
            f"(interval={self.poll_interval}s, max_attempts={self.max_attempts or 'unlimited'}, "
            f"max_wait={self.max_wait or 'unlimited'})"
        )

        async def poll_once(current_job: ExportJob) -> Optional[str]:
            await self._sleep(self.poll_interval)
            return await poll(current_job)

        retrying = AsyncRetrying(
            stop=self._build_stop(),
            retry=retry_if_result(lambda url: url is None),
            before_sleep=self._log_waiting,
        )

        start = time.monotonic()
        try:
            return await retrying(poll_once, job)
        except RetryError as e:
            attempts = e.last_attempt.attempt_number
            elapsed = time.monotonic() - start
            logger.error(
                f"{LOG_OUTPUT} Gave up on {job.format.value} export after "
                f"{attempts} polls ({elapsed:.0f}s)"
            )
            raise ExportTimeoutError(job.format.value, attempts, elapsed) from None

    def _build_stop(self):
        """Combine the configured caps into a tenacity stop condition."""
        stops = []
        if self.max_attempts and self.max_attempts > 0:
            stops.append(stop_after_attempt(self.max_attempts))
        if self.max_wait and self.max_wait > 0:
            stops.append(stop_after_delay(self.max_wait))

        if not stops:
            return stop_never
        return stop_any(*stops)

    def _log_waiting(self, retry_state) -> None:
        logger.info(
            f"{LOG_PROCESS} Waiting for export to complete... "
            f"(poll {retry_state.attempt_number})"
        )

    async def _poll_feed(self, job: ExportJob) -> Optional[str]:
        """
        Query one feed page and look for the job's completion record.

        Returns:
            Download URL, or None to keep polling
        """
        data = await self.api_client.post(ENDPOINT_NOTIFICATION_LOG, self.build_feed_query())
        records = parse_activities(data)

        logger.info(f"{LOG_PROCESS} Found {len(records)} activities")
        for record in records:
            elapsed = (record.start_time - job.watched_since) / 1000
            logger.debug(
                f"{LOG_PROCESS} Activity type: {record.type}, "
                f"timestamp: {record.start_time}, time since start: {elapsed}s"
            )

        match = find_export_activity(records, job.watched_since)
        if match is None:
            return None

        if not match.download_links:
            raise NotionAPIError(
                f"Activity {match.id} signals a completed export but carries no download link",
                endpoint=ENDPOINT_NOTIFICATION_LOG
            )

        export_url = match.download_links[0]
        logger.info(
            f"{LOG_OUTPUT} Export URL found for {job.format.value}: activity {match.id}, "
            f"{(match.start_time - job.watched_since) / 1000}s after submission"
        )
        return export_url

    async def _poll_task(self, job: ExportJob) -> Optional[str]:
        """
        Query the status of the job's task.

        Returns:
            Download URL, or None to keep polling

        Raises:
            ExportFailedError: Task finished in the failure state
        """
        data = await self.api_client.post(ENDPOINT_GET_TASKS, {'taskIds': [job.task_id]})
        results = data.get('results') or []

        task = next((t for t in results if t.get('id') == job.task_id), None)
        if task is None and results:
            task = results[0]
        if task is None:
            logger.info(f"{LOG_PROCESS} Task {job.task_id} not reported yet")
            return None

        state = task.get('state')
        status = task.get('status') or {}

        if state == TASK_STATE_SUCCESS:
            export_url = status.get('exportURL')
            if not export_url:
                raise NotionAPIError(
                    f"Task {job.task_id} succeeded without an export URL",
                    endpoint=ENDPOINT_GET_TASKS
                )
            logger.info(
                f"{LOG_OUTPUT} Export URL found for {job.format.value}: task {job.task_id}"
            )
            return export_url

        if state == TASK_STATE_FAILURE:
            raise ExportFailedError(
                f"{job.format.value} export task {job.task_id} failed: "
                f"{task.get('error') or 'no error reported'}"
            )

        logger.info(
            f"{LOG_PROCESS} Task {job.task_id} {state or 'pending'}: "
            f"{status.get('pagesExported', 0)} pages exported"
        )
        return None


__all__ = ['CompletionWatcher', 'find_export_activity', 'parse_activities']
