"""
Audit Log Service

Records the three events of every webhook delivery (incoming webhook,
outgoing SOAP request, SOAP response), joined by the request ID.

The pipeline only talks to an AuditSink. FileAuditSink appends JSON lines to
one file per event type per UTC day:

    <log_dir>/<YYYY-MM-DD>_incoming_webhook.log
    <log_dir>/<YYYY-MM-DD>_outgoing_soap.log
    <log_dir>/<YYYY-MM-DD>_soap_response.log

Every entry is also echoed to the application log so it shows up in the
platform's runtime logs when the files are ephemeral.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from erp_bridge.config import settings
from erp_bridge.utils.exceptions import AuditLogException
from erp_bridge.utils.logging_config import get_logger

logger = get_logger(__name__)

INCOMING_WEBHOOK = "incoming_webhook"
OUTGOING_SOAP = "outgoing_soap"
SOAP_RESPONSE = "soap_response"

ENTRY_TYPES = (INCOMING_WEBHOOK, OUTGOING_SOAP, SOAP_RESPONSE)


class AuditLogEntry(BaseModel):
    """A single audit log record"""

    request_id: str
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )
    type: str = Field(description="incoming_webhook, outgoing_soap or soap_response")
    method: Optional[str] = None
    url: Optional[str] = None
    headers: Optional[Dict[str, Any]] = None
    body: Optional[Any] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    order_id: Optional[str] = None

    @property
    def is_error(self) -> bool:
        """True for responses that carry an error or a non-2xx status"""
        if self.type != SOAP_RESPONSE:
            return False
        if self.error:
            return True
        return self.status_code is None or not 200 <= self.status_code < 300


class AuditSink(ABC):
    """Destination for audit log entries"""

    @abstractmethod
    async def write(self, entry: AuditLogEntry) -> None:
        """Persist one entry; must not raise for storage failures"""


class NullAuditSink(AuditSink):
    """Discards entries"""

    async def write(self, entry: AuditLogEntry) -> None:
        return None


class FileAuditSink(AuditSink):
    """Appends entries to per-type, per-day JSON lines files"""

    def __init__(self, log_dir: str = "./logs", echo: bool = True):
        self.log_dir = self._prepare_dir(log_dir)
        self.echo = echo

    @staticmethod
    def _prepare_dir(log_dir: str) -> Path:
        path = Path(log_dir)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(
                f"Could not create log directory {log_dir}, falling back to current directory",
                extra={"log_dir": log_dir, "error": str(e)},
            )
            path = Path(".")
        return path

    def path_for(self, entry_type: str, day: Optional[date] = None) -> Path:
        day = day or datetime.now(timezone.utc).date()
        return log_file_path(self.log_dir, entry_type, day)

    async def write(self, entry: AuditLogEntry) -> None:
        line = entry.model_dump_json(exclude_none=True)

        if self.echo:
            logger.info(f"LOG_ENTRY[{entry.type}]: {line}")

        path = self.path_for(entry.type)
        try:
            # File I/O runs in a worker thread, off the event loop
            await asyncio.to_thread(self._append_line, path, line)
        except OSError as e:
            # Audit failures never interrupt delivery
            logger.error(
                f"Error writing audit log file {path}: {e}",
                extra={"path": str(path), "entry_type": entry.type},
            )

    @staticmethod
    def _append_line(path: Path, line: str) -> None:
        with open(path, "a", encoding="utf-8") as fh:
            fh.write(line + "\n")


class AuditLogger:
    """Builds audit entries for the delivery pipeline and hands them to a sink"""

    def __init__(self, sink: Optional[AuditSink] = None):
        self.sink = sink or NullAuditSink()

    async def log_incoming_webhook(
        self,
        request_id: str,
        headers: Mapping[str, str],
        body: bytes,
        order_id: str,
    ) -> None:
        try:
            parsed_body: Any = json.loads(body)
        except ValueError:
            parsed_body = body.decode("utf-8", errors="replace")

        await self.sink.write(
            AuditLogEntry(
                request_id=request_id,
                type=INCOMING_WEBHOOK,
                method="POST",
                url="/webhook",
                headers=dict(headers),
                body=parsed_body,
                order_id=order_id,
            )
        )

    async def log_outgoing_soap(
        self,
        request_id: str,
        url: str,
        headers: Mapping[str, str],
        soap_body: str,
        order_id: str,
    ) -> None:
        await self.sink.write(
            AuditLogEntry(
                request_id=request_id,
                type=OUTGOING_SOAP,
                method="POST",
                url=url,
                headers=dict(headers),
                body=soap_body,
                order_id=order_id,
            )
        )

    async def log_soap_response(
        self,
        request_id: str,
        status_code: int,
        headers: Optional[Mapping[str, str]],
        response_body: str,
        order_id: str,
        error: Optional[str] = None,
    ) -> None:
        await self.sink.write(
            AuditLogEntry(
                request_id=request_id,
                type=SOAP_RESPONSE,
                status_code=status_code,
                headers=dict(headers) if headers else None,
                body=response_body,
                order_id=order_id,
                error=error,
            )
        )


def log_file_path(log_dir: Path, entry_type: str, day: date) -> Path:
    return Path(log_dir) / f"{day.isoformat()}_{entry_type}.log"


def read_audit_entries(
    log_dir: str,
    day: date,
    entry_types: Sequence[str] = ENTRY_TYPES,
) -> List[AuditLogEntry]:
    """
    Read audit entries for one day.

    Missing files are skipped. Lines that are not valid entries raise
    AuditLogException with the file and line number.

    Args:
        log_dir: Audit log directory
        day: UTC day to read
        entry_types: Event types to include

    Returns:
        Entries in file order, grouped by type in the order requested
    """
    entries: List[AuditLogEntry] = []
    for entry_type in entry_types:
        path = log_file_path(Path(log_dir), entry_type, day)
        if not path.exists():
            continue
        with open(path, encoding="utf-8") as fh:
            for line_no, line in enumerate(fh, start=1):
                if not line.strip():
                    continue
                entries.append(_parse_entry(line, path, line_no))
    return entries


def _parse_entry(line: str, path: Path, line_no: int) -> AuditLogEntry:
    try:
        return AuditLogEntry.model_validate_json(line)
    except ValueError as e:
        raise AuditLogException(
            f"Invalid audit log entry in {path}:{line_no}",
            details={"path": str(path), "line": line_no, "error": str(e)},
        ) from e


def follow_audit_entries(
    log_dir: str,
    day: date,
    entry_types: Sequence[str] = ENTRY_TYPES,
    poll_interval: float = 1.0,
    sleep: Optional[Callable[[float], None]] = None,
) -> Iterator[AuditLogEntry]:
    """
    Yield entries of one day as they are appended to the audit files.

    Starts at the beginning of each file, then polls every poll_interval
    seconds. A line is only read once its newline has been written. The
    generator never ends on its own; the consumer stops iterating.

    Args:
        log_dir: Audit log directory
        day: UTC day to follow
        entry_types: Event types to include
        poll_interval: Seconds between polls
        sleep: Blocking sleep function (default time.sleep)
    """
    sleep = sleep or time.sleep
    offsets = {entry_type: 0 for entry_type in entry_types}
    line_counts = {entry_type: 0 for entry_type in entry_types}

    while True:
        for entry_type in entry_types:
            path = log_file_path(Path(log_dir), entry_type, day)
            if not path.exists():
                continue
            with open(path, "rb") as fh:
                fh.seek(offsets[entry_type])
                data = fh.read()
            complete = data[: data.rfind(b"\n") + 1]
            offsets[entry_type] += len(complete)
            for line in complete.decode("utf-8").split("\n"):
                if not line.strip():
                    continue
                line_counts[entry_type] += 1
                yield _parse_entry(line, path, line_counts[entry_type])
        sleep(poll_interval)


def filter_entries(
    entries: Iterable[AuditLogEntry],
    request_id: Optional[str] = None,
    errors_only: bool = False,
) -> List[AuditLogEntry]:
    """Select entries for one request and/or only failed responses"""
    selected = []
    for entry in entries:
        if request_id and entry.request_id != request_id:
            continue
        if errors_only and not entry.is_error:
            continue
        selected.append(entry)
    return selected


def count_by_type(entries: Iterable[AuditLogEntry]) -> Dict[str, int]:
    counts = {entry_type: 0 for entry_type in ENTRY_TYPES}
    for entry in entries:
        counts[entry.type] = counts.get(entry.type, 0) + 1
    return counts


def count_responses(entries: Iterable[AuditLogEntry]) -> Dict[str, int]:
    """Split SOAP responses into successful and failed ones"""
    counts = {"successful": 0, "errors": 0}
    for entry in entries:
        if entry.type != SOAP_RESPONSE:
            continue
        counts["errors" if entry.is_error else "successful"] += 1
    return counts


def build_audit_logger(log_dir: Optional[str] = None) -> AuditLogger:
    """Audit logger writing to the configured log directory"""
    return AuditLogger(FileAuditSink(log_dir or settings.log_dir))
