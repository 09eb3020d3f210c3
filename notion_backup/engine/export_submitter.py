# Path: notion_backup/engine/export_submitter.py
"""
Export Job Submitter

Enqueues a workspace export task and records the watermark used to
recognise its completion on the activity feed.

The watermark is taken immediately BEFORE the request is sent: taking
it afterwards could miss a fast completion. Each ExportJob (and its
watermark) is valid for exactly one watch.
"""

import time
from datetime import datetime
from typing import Any, Callable, Optional

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.logger import get_logger
from notion_backup.engine.api_client import NotionAPIClient
from notion_backup.engine.result import ExportFormat, ExportJob
from notion_backup.constants import (
    ENDPOINT_ENQUEUE_TASK,
    EXPORT_EVENT_NAME,
    LOG_INPUT,
    LOG_OUTPUT,
)

logger = get_logger(__name__, 'engine')


def current_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ExportSubmitter:
    """
    Submits export jobs.

    Example:
        submitter = ExportSubmitter(api_client)
        job = await submitter.submit(ExportFormat.MARKDOWN)
        url = await watcher.wait_for_completion(job)
    """

    def __init__(
        self,
        api_client: NotionAPIClient,
        config: Optional[ConfigLoader] = None,
        clock: Callable[[], int] = current_millis
    ):
        """
        Initialize submitter.

        Args:
            api_client: Client used for the enqueue request
            config: Optional ConfigLoader instance
            clock: Epoch-millisecond clock used for the watermark
        """
        self.api_client = api_client
        self.config = config if config else ConfigLoader()
        self.clock = clock

        self.space_id = self.config.get('notion_space_id')
        self.timezone = self.config.get('export_timezone')
        self.locale = self.config.get('export_locale')
        self.export_comments = self.config.get('export_comments', False)

    def build_payload(self, export_format: ExportFormat) -> dict[str, Any]:
        """
        Build the enqueueTask request body.

        Args:
            export_format: Requested export format

        Returns:
            JSON payload
        """
        return {
            'task': {
                'eventName': EXPORT_EVENT_NAME,
                'request': {
                    'spaceId': self.space_id,
                    'exportOptions': {
                        'exportType': export_format.value,
                        'timeZone': self.timezone,
                        'locale': self.locale,
                    },
                    'shouldExportComments': self.export_comments,
                },
            },
        }

    async def submit(self, export_format: ExportFormat) -> ExportJob:
        """
        Enqueue an export and return the job with its watermark.

        Args:
            export_format: Requested export format

        Returns:
            ExportJob

        Raises:
            NotionAPIError: Submission failed (not retried)
        """
        logger.info(f"{LOG_INPUT} Initiating export for format: {export_format.value}")

        payload = self.build_payload(export_format)
        submitted_at = datetime.now()
        watched_since = self.clock()

        response = await self.api_client.post(ENDPOINT_ENQUEUE_TASK, payload)

        task_id = response.get('taskId') if isinstance(response, dict) else None
        job = ExportJob(
            format=export_format,
            submitted_at=submitted_at,
            watched_since=watched_since,
            task_id=str(task_id) if task_id else None,
        )

        logger.info(
            f"{LOG_OUTPUT} Export enqueued: format={export_format.value} "
            f"watermark={watched_since} task_id={job.task_id}"
        )
        return job


__all__ = ['ExportSubmitter', 'current_millis']
