from datetime import datetime, timezone
from decimal import Decimal

from src.tc_audit.domain.models import AuditEntry
from src.tc_audit.domain.summary import aggregate, build_summary, detect_anomalies, format_daily_message

_T0 = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
_T1 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _entry(i: int, action: str, ts: datetime = _T0, **kw: object) -> AuditEntry:
    return AuditEntry(id=i, timestamp=ts, action=action, entity=kw.pop("entity", "USER"), **kw)  # type: ignore[arg-type]


class TestAggregate:
    def test_by_day_and_action(self) -> None:
        entries = [
            _entry(1, "LOGIN"),
            _entry(2, "LOGIN"),
            _entry(3, "CREATE", _T1, amount_usd=Decimal("17499")),
        ]
        agg = aggregate(entries)
        assert agg.by_day == [("2026-03-01", 2), ("2026-03-02", 1)]
        assert agg.by_action[0] == ("LOGIN", 2)
        assert agg.payments_by_day == [("2026-03-02", Decimal("17499.00"))]

    def test_ignores_non_positive_amounts(self) -> None:
        agg = aggregate([_entry(1, "UPDATE", amount_usd=Decimal("0"))])
        assert agg.payments_by_day == []


class TestAnomalies:
    def test_failed_logins_per_ip(self) -> None:
        entries = [_entry(i, "LOGIN_FAILED", ip="10.0.0.1") for i in range(3)]
        entries.append(_entry(9, "LOGIN_FAILED", ip="10.0.0.2"))
        anomalies = detect_anomalies(entries)
        assert anomalies == ["3 failed login attempts from IP 10.0.0.1"]

    def test_large_payment(self) -> None:
        entries = [
            _entry(1, "PAYMENT_CONFIRMED", amount_usd=Decimal("100")),
            _entry(2, "PAYMENT_CONFIRMED", amount_usd=Decimal("100")),
            _entry(3, "PAYMENT_CONFIRMED", amount_usd=Decimal("100")),
            _entry(4, "PAYMENT_CONFIRMED", amount_usd=Decimal("1000")),
        ]
        assert any(">2x average" in a for a in detect_anomalies(entries))

    def test_deletions_blocks_failures(self) -> None:
        entries = [
            _entry(1, "DELETE"),
            _entry(2, "BLOCK_COMPANY"),
            _entry(3, "PAYMENT_FAILED", amount_usd=Decimal("10")),
        ]
        anomalies = detect_anomalies(entries)
        assert "1 deletion/archive event(s)" in anomalies
        assert "1 user/company block(s)" in anomalies
        assert "1 payment failure(s)" in anomalies

    def test_quiet_day(self) -> None:
        assert detect_anomalies([_entry(1, "LOGIN")]) == []


class TestSummary:
    def test_totals(self) -> None:
        entries = [
            _entry(1, "LOGIN", actor_email="a@x.com"),
            _entry(2, "VERIFY_COMPANY", entity="COMPANY", entity_id="CO-1", actor_email="admin@x.com"),
            _entry(3, "PAYMENT_CONFIRMED", amount_usd=Decimal("17499"), actor_email="a@x.com"),
        ]
        s = build_summary(entries, _T0, _T1)
        assert s.events == 3
        assert s.companies == 1
        assert s.users == 2
        assert s.payments_usd == Decimal("17499.00")
        assert s.notes == "No anomalies detected"

    def test_top_actions_capped_at_five(self) -> None:
        entries = [_entry(i, f"A{i}") for i in range(8)]
        assert len(build_summary(entries, _T0, _T1).top_actions) == 5

    def test_message_mentions_counts(self) -> None:
        s = build_summary([_entry(1, "LOGIN")], _T0, _T1)
        msg = format_daily_message(s)
        assert "Daily Summary" in msg
        assert "LOGIN" in msg
