"""HTTP tests for the leave routes: role gating, payload handling and the
end-to-end apply/approve/override flow.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from httpx import AsyncClient

LEAVES_URL = "/leaves"

EMPLOYEE_HEADERS = {"X-User-Id": "emp1", "X-Role": "Employee"}
OTHER_EMPLOYEE_HEADERS = {"X-User-Id": "emp2", "X-Role": "Employee"}
MANAGER_HEADERS = {"X-User-Id": "mgr1", "X-Role": "Manager"}
HR_HEADERS = {"X-User-Id": "hr1", "X-Role": "HR"}


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


def _apply_body(
    leave_type: str = "Annual",
    start_date: str = "2024-06-10",
    end_date: str = "2024-06-12",
    reason: str | None = "Family trip",
) -> dict[str, Any]:
    body: dict[str, Any] = {"leave_type": leave_type, "start_date": start_date, "end_date": end_date}
    if reason is not None:
        body["reason"] = reason
    return body


async def _apply(client: AsyncClient, headers: dict[str, str] = EMPLOYEE_HEADERS, **kwargs: Any) -> int:
    """Apply for leave and return the new id. Asserts 201."""
    resp = await client.post(LEAVES_URL, json=_apply_body(**kwargs), headers=headers)
    assert resp.status_code == 201, resp.text
    result: int = resp.json()["id"]
    return result


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


async def test_apply_returns_new_id(async_client: AsyncClient) -> None:
    resp = await async_client.post(LEAVES_URL, json=_apply_body(), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 201
    assert resp.json() == {"id": 1}


async def test_apply_inverted_dates_returns_400(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        LEAVES_URL,
        json=_apply_body(start_date="2024-06-12", end_date="2024-06-10"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 400
    data = resp.json()
    assert data["error"] == "ValidationError"
    assert data["detail"] == "End date cannot be earlier than start date."

    mine = await async_client.get(f"{LEAVES_URL}/mine", headers=EMPLOYEE_HEADERS)
    assert mine.json() == []


async def test_apply_malformed_body_returns_422(async_client: AsyncClient) -> None:
    resp = await async_client.post(LEAVES_URL, json={"leave_type": "Annual"}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 422


async def test_apply_requires_employee_role(async_client: AsyncClient) -> None:
    resp = await async_client.post(LEAVES_URL, json=_apply_body(), headers=MANAGER_HEADERS)
    assert resp.status_code == 403


async def test_missing_identity_header_returns_422(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{LEAVES_URL}/mine", headers={"X-Role": "Employee"})
    assert resp.status_code == 422


async def test_unknown_role_returns_422(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{LEAVES_URL}/mine", headers={"X-User-Id": "emp1", "X-Role": "Admin"})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Employee views
# ---------------------------------------------------------------------------


async def test_list_mine_only_returns_own_requests(async_client: AsyncClient) -> None:
    own = await _apply(async_client)
    await _apply(async_client, headers=OTHER_EMPLOYEE_HEADERS)

    resp = await async_client.get(f"{LEAVES_URL}/mine", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    rows = resp.json()
    assert [r["leave_id"] for r in rows] == [own]
    assert rows[0]["status"] == "Pending"
    assert rows[0]["start_date"] == "2024-06-10"


async def test_cancel_own_request(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)

    resp = await async_client.post(f"{LEAVES_URL}/{leave_id}/cancel", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"leave_id": leave_id, "changed": True}

    mine = await async_client.get(f"{LEAVES_URL}/mine", headers=EMPLOYEE_HEADERS)
    assert mine.json()[0]["status"] == "Rejected"


async def test_cancel_other_employees_request_is_noop(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)

    resp = await async_client.post(f"{LEAVES_URL}/{leave_id}/cancel", headers=OTHER_EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"leave_id": leave_id, "changed": False}

    mine = await async_client.get(f"{LEAVES_URL}/mine", headers=EMPLOYEE_HEADERS)
    assert mine.json()[0]["status"] == "Pending"


async def test_dashboard_shows_balances(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    await async_client.post(f"{LEAVES_URL}/{leave_id}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.get(f"{LEAVES_URL}/dashboard", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert [r["status"] for r in data["requests"]] == ["Approved"]
    balances = {b["leave_type"]: b for b in data["balances"]}
    assert balances["Annual"] == {"leave_type": "Annual", "allowance_days": 20, "used_days": 3, "remaining_days": 17}
    assert balances["Sick"]["remaining_days"] == 10


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


async def test_pending_list_requires_manager(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{LEAVES_URL}/pending", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Manager access required"


async def test_pending_list_oldest_first(async_client: AsyncClient) -> None:
    first = await _apply(async_client)
    second = await _apply(async_client, headers=OTHER_EMPLOYEE_HEADERS)

    resp = await async_client.get(f"{LEAVES_URL}/pending", headers=MANAGER_HEADERS)
    assert [r["leave_id"] for r in resp.json()] == [first, second]


async def test_approve_with_remarks(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave_id}/approve",
        json={"remarks": "Enjoy"},
        headers=MANAGER_HEADERS,
    )
    assert resp.json() == {"leave_id": leave_id, "changed": True}

    history = await async_client.get(f"{LEAVES_URL}/{leave_id}/history", headers=MANAGER_HEADERS)
    entries = history.json()
    assert [(e["previous_status"], e["new_status"]) for e in entries] == [(None, "Pending"), ("Pending", "Approved")]
    assert entries[-1]["remarks"] == "Enjoy"
    assert entries[-1]["changed_by"] == "mgr1"


async def test_reject_then_approve_is_noop(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)

    rejected = await async_client.post(f"{LEAVES_URL}/{leave_id}/reject", headers=MANAGER_HEADERS)
    approved = await async_client.post(f"{LEAVES_URL}/{leave_id}/approve", headers=MANAGER_HEADERS)
    assert rejected.json()["changed"] is True
    assert approved.json()["changed"] is False


async def test_approve_requires_manager(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    for headers in (EMPLOYEE_HEADERS, HR_HEADERS):
        resp = await async_client.post(f"{LEAVES_URL}/{leave_id}/approve", headers=headers)
        assert resp.status_code == 403


async def test_approve_missing_request_is_noop(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{LEAVES_URL}/404/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"leave_id": 404, "changed": False}


# ---------------------------------------------------------------------------
# HR
# ---------------------------------------------------------------------------


async def test_list_all_requires_hr(async_client: AsyncClient) -> None:
    resp = await async_client.get(LEAVES_URL, headers=MANAGER_HEADERS)
    assert resp.status_code == 403


async def test_list_all_newest_first(async_client: AsyncClient) -> None:
    first = await _apply(async_client)
    second = await _apply(async_client, headers=OTHER_EMPLOYEE_HEADERS)

    resp = await async_client.get(LEAVES_URL, headers=HR_HEADERS)
    assert resp.status_code == 200
    assert [r["leave_id"] for r in resp.json()] == [second, first]


async def test_override_unlocks_approved_request(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    await async_client.post(f"{LEAVES_URL}/{leave_id}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave_id}/override",
        json={"new_status": "Pending", "remarks": "Reopened"},
        headers=HR_HEADERS,
    )
    assert resp.json() == {"leave_id": leave_id, "changed": True}

    again = await async_client.post(f"{LEAVES_URL}/{leave_id}/approve", headers=MANAGER_HEADERS)
    assert again.json()["changed"] is True

    all_rows = await async_client.get(LEAVES_URL, headers=HR_HEADERS)
    assert all_rows.json()[0]["status"] == "Approved"


async def test_override_to_same_status_is_noop(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    resp = await async_client.post(
        f"{LEAVES_URL}/{leave_id}/override",
        json={"new_status": "Pending"},
        headers=HR_HEADERS,
    )
    assert resp.json()["changed"] is False


async def test_override_invalid_status_returns_400(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    resp = await async_client.post(
        f"{LEAVES_URL}/{leave_id}/override",
        json={"new_status": "Archived"},
        headers=HR_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid status specified for override."


async def test_override_requires_hr(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    resp = await async_client.post(
        f"{LEAVES_URL}/{leave_id}/override",
        json={"new_status": "Approved"},
        headers=MANAGER_HEADERS,
    )
    assert resp.status_code == 403


async def test_history_hidden_from_employees(async_client: AsyncClient) -> None:
    leave_id = await _apply(async_client)
    resp = await async_client.get(f"{LEAVES_URL}/{leave_id}/history", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403


async def test_notifications_sent_for_each_transition(async_client: AsyncClient, notifier: Any) -> None:
    leave_id = await _apply(async_client)
    await async_client.post(f"{LEAVES_URL}/{leave_id}/reject", headers=MANAGER_HEADERS)

    assert [subject for _, subject, _ in notifier.sent] == ["Leave request submitted", "Leave request rejected"]
    assert {recipient for recipient, _, _ in notifier.sent} == {"emp1"}
