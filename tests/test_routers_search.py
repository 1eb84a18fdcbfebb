import pytest

from clioboard.exceptions import ValidationFailedError
from clioboard.models.summary import SearchResponse, SearchResults, TaskHit


@pytest.fixture
def client(mocker):
    mocker.patch("clioboard.routers.search.summary_service")
    from clioboard.main import api
    from fastapi.testclient import TestClient
    return TestClient(api)


@pytest.fixture
def mock_svc(mocker):
    return mocker.patch("clioboard.routers.search.summary_service")


class TestSearch:
    def test_returns_results(self, client, mock_svc):
        mock_svc.search.return_value = SearchResponse(
            query="milk",
            results=SearchResults(tasks=[TaskHit(id="task123", title="Buy milk", column="Today")]),
            total_hits=1,
        )
        resp = client.get("/api/search?q=milk")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_hits"] == 1
        assert data["results"]["tasks"][0]["id"] == "task123"

    def test_forwards_params(self, client, mock_svc):
        mock_svc.search.return_value = SearchResponse(query="milk", results=SearchResults(), total_hits=0)
        client.get("/api/search?q=milk&type=notes&limit=3&summary=true")
        mock_svc.search.assert_called_once_with("milk", "notes", 3, True)

    def test_missing_query(self, client, mock_svc):
        resp = client.get("/api/search")
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "validation_failed"

    def test_unknown_type(self, client, mock_svc):
        resp = client.get("/api/search?q=milk&type=boards")
        assert resp.status_code == 400
        mock_svc.search.assert_not_called()

    def test_blank_query(self, client, mock_svc):
        mock_svc.search.side_effect = ValidationFailedError("Search query must not be blank")
        resp = client.get("/api/search?q=%20")
        assert resp.status_code == 400
