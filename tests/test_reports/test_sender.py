"""Tests de l'envoi des rapports à l'ERP (transport httpx simulé)."""

import base64
import json
import logging

import httpx
import pytest

from shopify_tickets.models.enums import ReportStatus
from shopify_tickets.reports.generator import MonthlyReportGenerator
from shopify_tickets.reports.models import ReportDocument, report_id
from shopify_tickets.reports.repository import ReportRepository
from shopify_tickets.store.errors import RetryExhaustedError


@pytest.fixture
async def saved_report(
    repository: ReportRepository, report_generator: MonthlyReportGenerator, seeded
) -> ReportDocument:
    await seeded()
    payload = await report_generator.generate_report(2025, 3)
    return await repository.save_with_counter(
        ReportDocument(id=report_id(2025, 3), year=2025, month=3, report=payload)
    )


@pytest.fixture
def save_failed(repository: ReportRepository, saved_report: ReportDocument):
    """Fabrique : copie du rapport de mars enregistrée pour un mois de 2024, en FAILURE.

    Le rapport de mars 2025 porte l'identifiant 1 : les copies reçoivent 2, 3, 4...
    """

    async def save(month: int) -> ReportDocument:
        document = saved_report.model_copy(update={"id": report_id(2024, month), "year": 2024, "month": month})
        stored = await repository.save_with_counter(document)
        await repository.update_status(stored.id, ReportStatus.SENDING)
        return await repository.update_status(stored.id, ReportStatus.FAILURE, "HTTP 500")

    return save


class TestSendReport:
    """Tests de send_report()."""

    async def test_success(
        self,
        make_sender,
        repository: ReportRepository,
        saved_report: ReportDocument,
        erp_requests: list[httpx.Request],
    ) -> None:
        result = await make_sender().send_report(saved_report)
        assert result.success is True
        assert result.status_code == 200
        assert result.response_text == "OK"
        assert result.report_id == "2025-03"

        (request,) = erp_requests
        assert request.method == "POST"
        expected = base64.b64encode(b"erp-user:erp-secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        body = json.loads(request.content)
        assert body["Factura"]["Cabecera"]["Identificador"] == "1"

        stored = await repository.find_by_id("2025-03")
        assert stored.status == ReportStatus.SUCCESS

    async def test_rejected_by_erp(
        self, make_sender, repository: ReportRepository, saved_report: ReportDocument
    ) -> None:
        sender = make_sender(lambda request: httpx.Response(422, text="Sociedad desconocida"))
        result = await sender.send_report(saved_report)
        assert result.success is False
        assert result.status_code == 422
        assert result.error == "Requête ERP refusée : Sociedad desconocida"

        stored = await repository.find_by_id("2025-03")
        assert stored.status == ReportStatus.FAILURE
        assert stored.retry_count == 1
        assert stored.error == result.error

    async def test_network_error_is_captured(
        self, make_sender, repository: ReportRepository, saved_report: ReportDocument
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("délai dépassé", request=request)

        result = await make_sender(respond).send_report(saved_report)
        assert result.success is False
        assert result.status_code is None
        assert "délai dépassé" in result.error
        assert (await repository.find_by_id("2025-03")).status == ReportStatus.FAILURE

    async def test_missing_endpoint(
        self,
        make_sender,
        repository: ReportRepository,
        saved_report: ReportDocument,
        erp_requests: list[httpx.Request],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="shopify_tickets.reports.sender"):
            result = await make_sender(endpoint="").send_report(saved_report)
        assert result.success is False
        assert "non configuré" in result.error
        assert erp_requests == []
        assert (await repository.find_by_id("2025-03")).status == ReportStatus.FAILURE
        assert "Échec de l'envoi du rapport 2025-03" in caplog.text

    async def test_resend_after_success(
        self, make_sender, repository: ReportRepository, saved_report: ReportDocument
    ) -> None:
        sender = make_sender()
        await sender.send_report(saved_report)
        result = await sender.send_report(saved_report)
        assert result.success is True
        assert (await repository.find_by_id("2025-03")).status == ReportStatus.SUCCESS

    async def test_contention_on_sending_is_recorded_as_failure(
        self,
        make_sender,
        repository: ReportRepository,
        saved_report: ReportDocument,
        erp_requests: list[httpx.Request],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        update_status = repository.update_status
        contended: list[ReportStatus] = []

        async def contended_update(document_id, status, error=None):
            if status == ReportStatus.SENDING and not contended:
                contended.append(status)
                msg = "Conflit persistant sur 2025-03"
                raise RetryExhaustedError(msg, attempts=3)
            return await update_status(document_id, status, error)

        monkeypatch.setattr(repository, "update_status", contended_update)
        result = await make_sender().send_report(saved_report)
        assert result.success is False
        assert "Conflit persistant" in result.error
        assert erp_requests == []

        stored = await repository.find_by_id("2025-03")
        assert stored.status == ReportStatus.FAILURE
        assert stored.retry_count == 1
        failed = [r.id async for r in repository.find_by_status(ReportStatus.FAILURE)]
        assert failed == ["2025-03"]

    async def test_regenerated_mid_send_is_recorded_as_failure(
        self,
        make_sender,
        repository: ReportRepository,
        saved_report: ReportDocument,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        update_status = repository.update_status

        async def regenerate_after_sending(document_id, status, error=None):
            updated = await update_status(document_id, status, error)
            if status == ReportStatus.SENDING:
                await repository.save_with_counter(saved_report)
            return updated

        monkeypatch.setattr(repository, "update_status", regenerate_after_sending)
        sender = make_sender(lambda request: httpx.Response(503, text="Mantenimiento"))
        result = await sender.send_report(saved_report)
        assert result.success is False
        stored = await repository.find_by_id("2025-03")
        assert stored.status == ReportStatus.FAILURE
        assert stored.identifier == 1


class TestRetryFailedReports:
    """Tests de retry_failed_reports()."""

    async def test_one_failure_does_not_abort_the_batch(
        self, make_sender, repository: ReportRepository, save_failed
    ) -> None:
        for month in (1, 2, 3):
            await save_failed(month)

        def respond(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            if body["Factura"]["Cabecera"]["Identificador"] == "4":
                return httpx.Response(500, text="Error interno")
            return httpx.Response(200, text="OK")

        results = await make_sender(respond).retry_failed_reports()
        assert [(r.report_id, r.success) for r in results] == [
            ("2024-01", True),
            ("2024-02", True),
            ("2024-03", False),
        ]

        retry_counts = {
            month: (await repository.find_by_year_and_month(2024, month)).retry_count
            for month in (1, 2, 3)
        }
        assert retry_counts == {1: 1, 2: 1, 3: 2}
        failed = [r.id async for r in repository.find_by_status(ReportStatus.FAILURE)]
        assert failed == ["2024-03"]

    async def test_nothing_to_retry(
        self, make_sender, saved_report: ReportDocument, erp_requests: list[httpx.Request]
    ) -> None:
        assert await make_sender().retry_failed_reports() == []
        assert erp_requests == []
