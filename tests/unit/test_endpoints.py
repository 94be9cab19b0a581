"""Endpoint tests against mocked collections."""
import json

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from conftest import auth_headers

USER_ID = str(ObjectId())
TASK_ID = str(ObjectId())


@pytest.mark.asyncio
class TestCellEditValidation:
    """PUT /timesheet/cell rejects unusable durations before touching the database."""

    @pytest.mark.parametrize("minutes", ["Infinity", "-Infinity", "NaN"])
    async def test_non_finite_minutes(self, api_client, mock_db, minutes):
        response = await api_client.put(
            "/timesheet/cell",
            content=f'{{"task_id": "{TASK_ID}", "date": "2024-01-03", "minutes": {minutes}}}',
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 422
        mock_db.__getitem__.assert_not_called()

    @pytest.mark.parametrize("value", ["999999999999999999", "25:00"])
    async def test_value_over_a_day(self, api_client, mock_db, value):
        response = await api_client.put(
            "/timesheet/cell",
            content=json.dumps({"task_id": TASK_ID, "date": "2024-01-03", "value": value}),
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 400
        assert "24:00" in response.json()["detail"]

    async def test_minutes_over_a_day(self, api_client, mock_db):
        tasks = mock_db["tasks"]
        time_entries = mock_db["time_entries"]

        response = await api_client.put(
            "/timesheet/cell",
            content=json.dumps({"task_id": TASK_ID, "date": "2024-01-03", "minutes": 1e18}),
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 400
        tasks.find_one.assert_not_called()
        time_entries.find.assert_not_called()
        time_entries.insert_one.assert_not_called()


@pytest.mark.asyncio
class TestManualEntryValidation:
    """POST /time-entries rejects unusable durations before touching the database."""

    @pytest.mark.parametrize("minutes", ["Infinity", "NaN"])
    async def test_non_finite_minutes(self, api_client, mock_db, minutes):
        response = await api_client.post(
            "/time-entries",
            content=f'{{"task_id": "{TASK_ID}", "minutes": {minutes}}}',
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 422
        mock_db.__getitem__.assert_not_called()

    async def test_minutes_over_a_day(self, api_client, mock_db):
        tasks = mock_db["tasks"]
        time_entries = mock_db["time_entries"]

        response = await api_client.post(
            "/time-entries",
            content=json.dumps({"task_id": TASK_ID, "minutes": 1e18}),
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 400
        tasks.find_one.assert_not_called()
        time_entries.insert_one.assert_not_called()


@pytest.mark.asyncio
class TestDatabaseFailures:
    """Driver errors surface as 502 with the driver's message."""

    async def test_read_failure_is_bad_gateway(self, api_client, mock_db):
        mock_db["time_entries"].find.side_effect = PyMongoError("connection refused")

        response = await api_client.get(
            "/timesheet",
            params={"start_date": "2023-12-31", "end_date": "2024-01-06"},
            headers=auth_headers(USER_ID),
        )

        assert response.status_code == 502
        assert response.json() == {"detail": "connection refused"}

    async def test_reconciliation_error_is_a_persistence_error(self):
        from tasktrack.exceptions import PersistenceError, ReconciliationError

        error = ReconciliationError("stopped", report=None)

        assert isinstance(error, PersistenceError)
        assert error.report is None
