"""Audit analytics: dashboard aggregates and the daily summary digest.

Pure functions over AuditEntry lists so they are testable without a DB.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.tc_audit.domain.models import AuditEntry
from src.tc_common.datetime_utils import day_key
from src.tc_common.money import ZERO, to_usd

_LOGIN_FAIL_ACTIONS = {"LOGIN_FAIL", "LOGIN_FAILED"}
_PAYMENT_ACTIONS = {"PAYMENT_INITIATED", "PAYMENT_SUBMITTED", "PAYMENT_CONFIRMED", "PAYMENT_FAILED"}
_DELETION_ACTIONS = {"DELETE", "ARCHIVE_COMPANY", "COMPANY_DELETED"}
_BLOCK_ACTIONS = {"USER_BLOCK", "USER_BLOCKED", "BLOCK_COMPANY"}
_FAILED_LOGIN_THRESHOLD = 3
_TOP_ACTIONS = 5


@dataclass
class Aggregates:
    by_day: list[tuple[str, int]]
    by_action: list[tuple[str, int]]
    payments_by_day: list[tuple[str, Decimal]]


@dataclass
class Summary:
    date_from: datetime
    date_to: datetime
    events: int
    companies: int
    users: int
    payments_usd: Decimal
    top_actions: list[tuple[str, int]]
    anomalies: list[str] = field(default_factory=list)

    @property
    def notes(self) -> str | None:
        return None if self.anomalies else "No anomalies detected"


def aggregate(entries: list[AuditEntry]) -> Aggregates:
    """Per-day event counts, per-action counts, and per-day positive payment totals."""
    by_day: Counter[str] = Counter()
    by_action: Counter[str] = Counter()
    payments: dict[str, Decimal] = {}
    for e in entries:
        day = day_key(e.timestamp)
        by_day[day] += 1
        by_action[e.action] += 1
        if e.amount_usd is not None and e.amount_usd > 0:
            payments[day] = payments.get(day, ZERO) + e.amount_usd
    return Aggregates(
        by_day=sorted(by_day.items()),
        by_action=sorted(by_action.items(), key=lambda kv: (-kv[1], kv[0])),
        payments_by_day=sorted((d, to_usd(a)) for d, a in payments.items()),
    )


def detect_anomalies(entries: list[AuditEntry]) -> list[str]:
    anomalies: list[str] = []

    fails_by_ip: Counter[str] = Counter(
        e.ip for e in entries if e.action in _LOGIN_FAIL_ACTIONS and e.ip
    )
    for ip, count in sorted(fails_by_ip.items()):
        if count >= _FAILED_LOGIN_THRESHOLD:
            anomalies.append(f"{count} failed login attempts from IP {ip}")

    payments = [e for e in entries if e.action in _PAYMENT_ACTIONS]
    if payments:
        total = sum((e.amount_usd for e in payments if e.amount_usd is not None), ZERO)
        avg = total / len(payments)
        large = [e for e in payments if e.amount_usd is not None and e.amount_usd > avg * 2]
        if large and avg > 0:
            anomalies.append(f"{len(large)} payment(s) >2x average (${to_usd(avg)})")

    deletions = sum(1 for e in entries if e.action in _DELETION_ACTIONS)
    if deletions:
        anomalies.append(f"{deletions} deletion/archive event(s)")

    blocks = sum(1 for e in entries if e.action in _BLOCK_ACTIONS)
    if blocks:
        anomalies.append(f"{blocks} user/company block(s)")

    failures = sum(1 for e in entries if e.action == "PAYMENT_FAILED")
    if failures:
        anomalies.append(f"{failures} payment failure(s)")

    return anomalies


def build_summary(entries: list[AuditEntry], date_from: datetime, date_to: datetime) -> Summary:
    companies = {e.entity_id for e in entries if e.entity == "COMPANY" and e.entity_id}
    users = {e.actor_email for e in entries if e.actor_email}
    payments = sum((e.amount_usd for e in entries if e.amount_usd is not None), ZERO)
    actions: Counter[str] = Counter(e.action for e in entries)
    top = sorted(actions.items(), key=lambda kv: (-kv[1], kv[0]))[:_TOP_ACTIONS]
    return Summary(
        date_from=date_from,
        date_to=date_to,
        events=len(entries),
        companies=len(companies),
        users=len(users),
        payments_usd=to_usd(payments),
        top_actions=top,
        anomalies=detect_anomalies(entries),
    )


def format_daily_message(summary: Summary) -> str:
    """Telegram (HTML parse mode) digest of a Summary."""
    top = ", ".join(f"{a} ({c})" for a, c in summary.top_actions[:3]) or "None"
    lines = [
        "<b>Daily Summary</b> (UTC)",
        "",
        "<b>Totals:</b>",
        f"• Events: {summary.events}",
        f"• Payments: ${summary.payments_usd:,.2f}",
        f"• Active Users: {summary.users}",
        f"• Companies: {summary.companies}",
        "",
        "<b>Top Actions:</b>",
        top,
    ]
    if summary.anomalies:
        lines += ["", "<b>Alerts:</b>"] + [f"• {a}" for a in summary.anomalies]
    return "\n".join(lines)
