"""
CloudConvert integration for document format conversion.

Used for PDF → DOCX before table extraction and DOCX → PDF for the
product selection deliverable. One job per conversion:
import/upload → convert → export/url.
"""

import time
from typing import Optional
import requests
import structlog

from config import settings
from exceptions import ConversionError

logger = structlog.get_logger(__name__)

IMPORT_TASK = "import-file"
CONVERT_TASK = "convert-file"
EXPORT_TASK = "export-file"


class FormatConverter:
    """Converts document bytes between formats."""

    def convert(self, content: bytes, source_format: str, target_format: str) -> bytes:
        raise NotImplementedError


class CloudConvertClient(FormatConverter):
    """
    CloudConvert v2 REST client.

    Raises:
        ConversionError: On any API, upload, job or download failure
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        sync_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.cloudconvert_api_key
        self.base_url = (base_url or settings.cloudconvert_base_url).rstrip("/")
        self.sync_url = (sync_url or settings.cloudconvert_sync_url).rstrip("/")
        self.timeout = timeout or settings.conversion_timeout_seconds

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def convert(self, content: bytes, source_format: str, target_format: str) -> bytes:
        """
        Convert a document.

        Args:
            content: Source file bytes
            source_format: e.g. "pdf"
            target_format: e.g. "docx"

        Returns:
            Converted file bytes
        """
        if not self.api_key:
            raise ConversionError("CloudConvert API key not configured")

        started = time.monotonic()
        logger.info(
            "conversion_started",
            source_format=source_format,
            target_format=target_format,
            size_bytes=len(content)
        )

        try:
            job = self._create_job(source_format, target_format)
            self._upload(job, content, f"document.{source_format}")
            finished = self._wait(job["id"])
            url = self._export_url(finished)
            converted = self._download(url)
        except requests.exceptions.RequestException as e:
            logger.error(
                "conversion_request_failed",
                source_format=source_format,
                target_format=target_format,
                error=str(e)
            )
            raise ConversionError(
                f"Conversion {source_format} → {target_format} failed: {str(e)}"
            )

        logger.info(
            "conversion_completed",
            source_format=source_format,
            target_format=target_format,
            size_bytes=len(converted),
            duration_seconds=round(time.monotonic() - started, 2)
        )
        return converted

    # ===================
    # JOB STEPS
    # ===================

    def _create_job(self, source_format: str, target_format: str) -> dict:
        payload = {
            "tasks": {
                IMPORT_TASK: {"operation": "import/upload"},
                CONVERT_TASK: {
                    "operation": "convert",
                    "input": IMPORT_TASK,
                    "input_format": source_format,
                    "output_format": target_format,
                },
                EXPORT_TASK: {"operation": "export/url", "input": CONVERT_TASK},
            }
        }

        response = requests.post(
            f"{self.base_url}/jobs",
            json=payload,
            headers=self.headers,
            timeout=30
        )
        response.raise_for_status()
        return response.json()["data"]

    def _upload(self, job: dict, content: bytes, filename: str) -> None:
        task = find_task(job, IMPORT_TASK)
        form = (task.get("result") or {}).get("form")
        if not form:
            raise ConversionError("Upload task has no upload form", details={"job_id": job.get("id")})

        response = requests.post(
            form["url"],
            data=form.get("parameters", {}),
            files={"file": (filename, content)},
            timeout=60
        )
        response.raise_for_status()

    def _wait(self, job_id: str) -> dict:
        """Block on the sync endpoint until the job finishes or fails."""
        response = requests.get(
            f"{self.sync_url}/jobs/{job_id}",
            headers=self.headers,
            timeout=self.timeout
        )
        response.raise_for_status()

        job = response.json()["data"]
        if job.get("status") != "finished":
            failed = [t for t in job.get("tasks", []) if t.get("status") == "error"]
            message = failed[0].get("message") if failed else job.get("status")
            raise ConversionError(
                f"Conversion job did not finish: {message}",
                details={"job_id": job_id, "status": job.get("status")}
            )
        return job

    @staticmethod
    def _export_url(job: dict) -> str:
        task = find_task(job, EXPORT_TASK)
        files = (task.get("result") or {}).get("files") or []
        if not files or not files[0].get("url"):
            raise ConversionError("Export task failed or no file URL", details={"job_id": job.get("id")})
        return files[0]["url"]

    def _download(self, url: str) -> bytes:
        response = requests.get(url, timeout=60)
        response.raise_for_status()
        return response.content


def find_task(job: dict, name: str) -> dict:
    for task in job.get("tasks", []):
        if task.get("name") == name:
            return task
    raise ConversionError(f"Task '{name}' not found in conversion job", details={"job_id": job.get("id")})


# Singleton instance
_converter: Optional[FormatConverter] = None


def get_converter() -> FormatConverter:
    """Get or create the configured format converter."""
    global _converter
    if _converter is None:
        _converter = CloudConvertClient()
    return _converter
