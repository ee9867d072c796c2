from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_grading_orchestrator
from app.core.config import settings
from app.grading.artifacts import GradeVerdict
from app.grading.orchestrator import EMPTY_BOARD_ERROR, GradingOrchestrator
from app.grading.rate_limit import AdmissionController
from app.main import app
from app.tests.fakes import FakeCounterStore, client_db_snapshot

GRADING_URL = f"{settings.API_V1_STR}/grading/"


@pytest.fixture
def llm() -> MagicMock:
    llm = MagicMock()
    llm.generate_structured = AsyncMock(
        return_value=GradeVerdict(
            score=8,
            feedback="Well layered.",
            strengths=["Stateless web tier"],
            weaknesses=[],
            missing_components=["CDN"],
            security_risks=["No WAF in front of the load balancer"],
        )
    )
    return llm


@pytest.fixture
def client(counter_store: FakeCounterStore, llm: MagicMock):
    orchestrator = GradingOrchestrator(admission=AdmissionController(counter_store, quota=5), llm=llm)
    app.dependency_overrides[get_grading_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_grade_returns_camel_case_verdict(client: TestClient):
    response = client.post(
        GRADING_URL,
        json={"snapshot": client_db_snapshot(), "problemStatement": "  Design an order service  "},
        headers={"X-User-Id": "user-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["remaining"] == 4
    assert body["result"]["missingComponents"] == ["CDN"]
    assert body["result"]["securityRisks"] == ["No WAF in front of the load balancer"]


def test_quota_exhaustion_is_a_typed_failure(client: TestClient, llm: MagicMock):
    payload = {"snapshot": client_db_snapshot(), "problemStatement": "Design an order service"}
    for _ in range(5):
        client.post(GRADING_URL, json=payload, headers={"X-User-Id": "user-1"})

    response = client.post(GRADING_URL, json=payload, headers={"X-User-Id": "user-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert "Rate limit exceeded" in body["error"]
    assert isinstance(body["resetAt"], int)
    assert llm.generate_structured.await_count == 5


def test_empty_board_is_a_typed_failure(client: TestClient):
    response = client.post(
        GRADING_URL,
        json={"snapshot": None, "problemStatement": "Design an order service"},
        headers={"X-User-Id": "user-1"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": EMPTY_BOARD_ERROR}


@pytest.mark.parametrize("snapshot", [[], "board", 42])
def test_non_object_snapshot_is_charged_and_reported_empty(
    client: TestClient, counter_store: FakeCounterStore, llm: MagicMock, snapshot
):
    response = client.post(
        GRADING_URL,
        json={"snapshot": snapshot, "problemStatement": "Design an order service"},
        headers={"X-User-Id": "user-1"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": EMPTY_BOARD_ERROR}
    assert counter_store.calls == ["user-1"]
    llm.generate_structured.assert_not_awaited()


def test_missing_identity_is_rejected(client: TestClient, llm: MagicMock):
    response = client.post(
        GRADING_URL,
        json={"snapshot": client_db_snapshot(), "problemStatement": "Design an order service"},
    )

    assert response.status_code == 401
    llm.generate_structured.assert_not_awaited()


@pytest.mark.parametrize("problem_statement", ["", "   "])
def test_blank_problem_statement_is_rejected(client: TestClient, counter_store: FakeCounterStore, problem_statement):
    response = client.post(
        GRADING_URL,
        json={"snapshot": client_db_snapshot(), "problemStatement": problem_statement},
        headers={"X-User-Id": "user-1"},
    )

    assert response.status_code == 422
    assert counter_store.calls == []


def test_shape_types_lists_the_canvas_catalog(client: TestClient):
    response = client.get(f"{settings.API_V1_STR}/grading/shape-types")

    assert response.status_code == 200
    by_type = {item["type"]: item["props"] for item in response.json()}
    assert by_type["database"]["dbType"] == ["postgres", "mysql", "mongodb", "redis"]
    assert by_type["client"]["clientType"] == ["mobile", "web"]
    assert by_type["loadBalancer"] == {"label": None}
    assert "arrow" in by_type


def test_health_check(client: TestClient):
    response = client.get(f"{settings.API_V1_STR}/utils/health-check/")

    assert response.status_code == 200
    assert response.json() is True
