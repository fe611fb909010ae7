"""
Test Audit Log

Tests the file sink layout, entry contents and the log readers.
"""

import json
import threading
from datetime import date, datetime, timezone

import pytest

from erp_bridge.services.audit_log import (
    INCOMING_WEBHOOK,
    OUTGOING_SOAP,
    SOAP_RESPONSE,
    AuditLogEntry,
    AuditLogger,
    AuditSink,
    FileAuditSink,
    NullAuditSink,
    count_by_type,
    count_responses,
    filter_entries,
    read_audit_entries,
)
from erp_bridge.utils.exceptions import AuditLogException


def _today() -> date:
    return datetime.now(timezone.utc).date()


@pytest.fixture
def file_sink(tmp_path):
    return FileAuditSink(str(tmp_path), echo=False)


async def test_file_sink_writes_one_file_per_type_per_day(tmp_path, file_sink):
    audit_logger = AuditLogger(file_sink)

    await audit_logger.log_incoming_webhook("req-1", {"X-Shopify-Topic": "orders/create"}, b'{"id": 1}', "1")
    await audit_logger.log_outgoing_soap("req-1", "https://erp.test", {"SOAPAction": '"a"'}, "<xml/>", "1")
    await audit_logger.log_soap_response("req-1", 200, {"Content-Type": "text/xml"}, "<ok/>", "1")
    await audit_logger.log_soap_response("req-1", 0, None, "", "1", error="ConnectError: refused")

    day = _today().isoformat()
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        f"{day}_incoming_webhook.log",
        f"{day}_outgoing_soap.log",
        f"{day}_soap_response.log",
    ]

    response_lines = (tmp_path / f"{day}_soap_response.log").read_text().splitlines()
    assert len(response_lines) == 2
    ok, failed = (json.loads(line) for line in response_lines)
    assert ok["status_code"] == 200
    assert ok["body"] == "<ok/>"
    assert "error" not in ok
    assert failed["status_code"] == 0
    assert failed["error"] == "ConnectError: refused"
    assert "headers" not in failed


async def test_incoming_webhook_body_is_parsed_json(audit_sink):
    await AuditLogger(audit_sink).log_incoming_webhook("req-1", {}, b'{"id": 5, "order_number": 9}', "5")

    entry = audit_sink.entries[0]
    assert entry.type == INCOMING_WEBHOOK
    assert entry.body == {"id": 5, "order_number": 9}


async def test_incoming_webhook_body_falls_back_to_text(audit_sink):
    await AuditLogger(audit_sink).log_incoming_webhook("req-1", {}, b"not json", "0")

    assert audit_sink.entries[0].body == "not json"


def test_entry_timestamp_is_utc():
    entry = AuditLogEntry(request_id="r", type=OUTGOING_SOAP)

    assert entry.timestamp.endswith("Z")


@pytest.mark.parametrize(
    "entry, is_error",
    [
        (AuditLogEntry(request_id="r", type=SOAP_RESPONSE, status_code=200), False),
        (AuditLogEntry(request_id="r", type=SOAP_RESPONSE, status_code=299), False),
        (AuditLogEntry(request_id="r", type=SOAP_RESPONSE, status_code=500), True),
        (AuditLogEntry(request_id="r", type=SOAP_RESPONSE, status_code=0, error="boom"), True),
        (AuditLogEntry(request_id="r", type=OUTGOING_SOAP), False),
    ],
)
def test_entry_is_error(entry, is_error):
    assert entry.is_error is is_error


async def test_read_and_filter_entries(tmp_path, file_sink):
    audit_logger = AuditLogger(file_sink)
    await audit_logger.log_outgoing_soap("req-1", "https://erp.test", {}, "<a/>", "1")
    await audit_logger.log_soap_response("req-1", 500, {}, "fault", "1")
    await audit_logger.log_outgoing_soap("req-2", "https://erp.test", {}, "<b/>", "2")
    await audit_logger.log_soap_response("req-2", 200, {}, "ok", "2")

    entries = read_audit_entries(str(tmp_path), _today())

    assert [entry.type for entry in entries] == [OUTGOING_SOAP, OUTGOING_SOAP, SOAP_RESPONSE, SOAP_RESPONSE]
    assert [entry.request_id for entry in filter_entries(entries, request_id="req-2")] == ["req-2", "req-2"]
    errors = filter_entries(entries, errors_only=True)
    assert len(errors) == 1
    assert errors[0].body == "fault"
    assert count_by_type(entries) == {INCOMING_WEBHOOK: 0, OUTGOING_SOAP: 2, SOAP_RESPONSE: 2}


def test_read_missing_day_is_empty(tmp_path):
    assert read_audit_entries(str(tmp_path), date(2020, 1, 1)) == []


def test_read_corrupt_line_raises(tmp_path):
    (tmp_path / "2024-01-15_soap_response.log").write_text("{broken\n")

    with pytest.raises(AuditLogException) as exc_info:
        read_audit_entries(str(tmp_path), date(2024, 1, 15))

    assert exc_info.value.details["line"] == 1


def test_file_sink_falls_back_when_dir_cannot_be_created(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    sink = FileAuditSink(str(blocker / "logs"), echo=False)

    assert str(sink.log_dir) == "."


async def test_write_failure_does_not_raise(tmp_path, file_sink):
    """Test audit write errors never propagate to the caller"""
    file_sink.log_dir = tmp_path / "removed"

    await file_sink.write(AuditLogEntry(request_id="r", type=OUTGOING_SOAP))


async def test_null_sink_discards():
    await AuditLogger(NullAuditSink()).log_outgoing_soap("r", "u", {}, "<x/>", "1")


async def test_file_sink_appends_off_the_event_loop_thread(monkeypatch, file_sink):
    """Test the file append runs in a worker thread, not on the loop thread"""
    threads = []

    def record_thread(path, line):
        threads.append(threading.current_thread())

    monkeypatch.setattr(FileAuditSink, "_append_line", staticmethod(record_thread))

    await AuditLogger(file_sink).log_outgoing_soap("r", "u", {}, "<x/>", "1")

    assert len(threads) == 1
    assert threads[0] is not threading.current_thread()


def test_audit_sink_is_abstract():
    with pytest.raises(TypeError):
        AuditSink()


def test_count_responses():
    entries = [
        AuditLogEntry(request_id="a", type=OUTGOING_SOAP),
        AuditLogEntry(request_id="a", type=SOAP_RESPONSE, status_code=200),
        AuditLogEntry(request_id="b", type=SOAP_RESPONSE, status_code=503),
        AuditLogEntry(request_id="b", type=SOAP_RESPONSE, status_code=0, error="ConnectError"),
    ]

    assert count_responses(entries) == {"successful": 1, "errors": 2}
