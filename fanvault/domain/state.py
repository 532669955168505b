from datetime import datetime

from fanvault.domain.entities import Report, ReportStatus
from fanvault.domain.errors import InvalidState

# resolved and dismissed are terminal
REPORT_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    "pending": frozenset({"reviewed", "resolved", "dismissed"}),
    "reviewed": frozenset({"resolved", "dismissed"}),
    "resolved": frozenset(),
    "dismissed": frozenset(),
}


def can_transition(current: ReportStatus, new: ReportStatus) -> bool:
    if current == new:
        return True
    return new in REPORT_TRANSITIONS[current]


def transition(
    report: Report,
    new_status: ReportStatus,
    now: datetime,
    admin_notes: str | None = None,
) -> Report:
    """
    Return a NEW Report with the updated status.
    Raises InvalidState if the transition is not allowed.
    """
    if report.status == new_status and admin_notes is None:
        return report.model_copy()

    if not can_transition(report.status, new_status):
        raise InvalidState(f"Invalid transition from {report.status} to {new_status}")

    updates: dict[str, object] = {"status": new_status, "updated_at": now}
    if admin_notes is not None:
        updates["admin_notes"] = admin_notes
    return report.model_copy(update=updates)
