"""Integration tests for day endpoints."""
import pytest

SCHEDULE = {
    "work_start": "08:00",
    "work_end": "17:00",
    "lunch_break_minutes": 60,
    "other_break_minutes": 15,
}


@pytest.mark.asyncio
class TestDaySummary:
    """Tests for the day summary endpoint."""

    async def test_get_day(self, app_client, auth_headers, day_docs, entry_doc):
        """Test the summary lists entries with totals."""
        day_docs([entry_doc(duration=3600, corrected_duration=4500)])

        response = await app_client.get(
            "/days/2025-11-03", params={"tz": "UTC"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["day"] == "2025-11-03"
        assert data["total_duration"] == 3600
        assert data["total_effective_duration"] == 4500
        assert data["has_corrections"] is True
        assert data["entries"][0]["corrected_duration"] == 4500
        assert "id" in data["entries"][0]

    async def test_get_day_unknown_zone(self, app_client, auth_headers):
        """Test an unknown zone is a bad request."""
        response = await app_client.get(
            "/days/2025-11-03", params={"tz": "Mars/Olympus"}, headers=auth_headers
        )

        assert response.status_code == 400

    async def test_get_day_requires_auth(self, app_client):
        """Test the summary requires authentication."""
        response = await app_client.get("/days/2025-11-03")

        assert response.status_code == 401


@pytest.mark.asyncio
class TestBalancePreview:
    """Tests for the balance preview endpoint."""

    async def test_preview_single_entry(self, app_client, auth_headers, day_docs, entry_doc):
        """Test a single 3h entry is scaled to 7.75h."""
        doc = entry_doc(duration=10800)
        day_docs([doc])

        response = await app_client.post(
            "/days/2025-11-03/balance/preview",
            json=SCHEDULE,
            params={"tz": "UTC"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["time_difference_hours"] == pytest.approx(4.75)
        assert data["rounded_difference_hours"] == pytest.approx(0)
        assert data["adjusted_entries"] == [
            {
                "id": str(doc["_id"]),
                "original_duration": 10800,
                "unrounded_duration": pytest.approx(27900),
                "duration": 27900,
            }
        ]

    async def test_preview_missing_schedule(self, app_client, auth_headers, day_docs, entry_doc):
        """Test a schedule without times returns an empty balance."""
        day_docs([entry_doc()])

        response = await app_client.post(
            "/days/2025-11-03/balance/preview",
            json={"work_end": "17:00"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["time_difference_hours"] is None
        assert data["rounded_difference_hours"] is None
        assert data["adjusted_entries"] == []

    async def test_preview_inverted_schedule(self, app_client, auth_headers, day_docs, entry_doc):
        """Test an inverted schedule is unprocessable."""
        day_docs([entry_doc()])

        response = await app_client.post(
            "/days/2025-11-03/balance/preview",
            json={"work_start": "17:00", "work_end": "08:00"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert "after" in response.json()["detail"]

    async def test_preview_zero_durations(self, app_client, auth_headers, day_docs, entry_doc):
        """Test all-zero entries are unprocessable."""
        day_docs([entry_doc(duration=0)])

        response = await app_client.post(
            "/days/2025-11-03/balance/preview",
            json=SCHEDULE,
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert "zero duration" in response.json()["detail"]

    async def test_preview_malformed_time(self, app_client, auth_headers):
        """Test malformed times fail request validation."""
        response = await app_client.post(
            "/days/2025-11-03/balance/preview",
            json={"work_start": "8am", "work_end": "17:00"},
            headers=auth_headers,
        )

        assert response.status_code == 422


@pytest.mark.asyncio
class TestBalanceApply:
    """Tests for applying a balance."""

    async def test_apply_success(
        self, app_client, auth_headers, mock_entries, day_docs, entry_doc
    ):
        """Test a balanced day is stored."""
        day_docs([entry_doc(duration=3600), entry_doc(duration=1800)])

        response = await app_client.post(
            "/days/2025-11-03/balance",
            json=SCHEDULE,
            params={"tz": "UTC"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        durations = [entry["duration"] for entry in response.json()["adjusted_entries"]]
        assert durations == [18900, 9000]
        mock_entries.bulk_write.assert_awaited_once()

    async def test_apply_needs_confirmation(
        self, app_client, auth_headers, mock_entries, day_docs, entry_doc
    ):
        """Test a residual returns 409 until confirmed."""
        day_docs([entry_doc(duration=3600)])
        schedule = {"work_start": "08:00", "work_end": "16:10"}

        response = await app_client.post(
            "/days/2025-11-03/balance", json=schedule, headers=auth_headers
        )

        assert response.status_code == 409
        assert "confirm" in response.json()["detail"]
        mock_entries.bulk_write.assert_not_awaited()

        response = await app_client.post(
            "/days/2025-11-03/balance",
            json=schedule,
            params={"confirm": "true"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["requires_confirmation"] is True
        mock_entries.bulk_write.assert_awaited_once()

    async def test_apply_requires_auth(self, app_client):
        """Test applying requires authentication."""
        response = await app_client.post("/days/2025-11-03/balance", json=SCHEDULE)

        assert response.status_code == 401


@pytest.mark.asyncio
class TestBalanceUndo:
    """Tests for undoing a day's balance."""

    async def test_undo_day(self, app_client, auth_headers, mock_entries, day_docs, entry_doc):
        """Test corrected entries are reported as cleared."""
        doc = entry_doc(corrected_duration=4500)
        day_docs([doc, entry_doc()])

        response = await app_client.delete(
            "/days/2025-11-03/balance", params={"tz": "UTC"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == [
            {"id": str(doc["_id"]), "corrected_duration_cleared": True}
        ]
        mock_entries.update_many.assert_awaited_once()

    async def test_undo_day_nothing_to_clear(self, app_client, auth_headers, mock_entries):
        """Test undo on a day without corrections is a no-op."""
        response = await app_client.delete(
            "/days/2025-11-03/balance", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == []
        mock_entries.update_many.assert_not_awaited()
