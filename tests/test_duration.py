from datetime import datetime, timedelta

from realty_crm.core.duration import duration_label, lead_duration, severity_for_days

NOW = datetime(2024, 6, 15, 12, 0, 0)


def test_minutes_label_is_fresh():
    result = lead_duration(NOW - timedelta(minutes=45), NOW)
    assert result.label == "45 minutes"
    assert result.severity_tier == "fresh"


def test_forty_five_days_is_one_month_and_aging():
    result = lead_duration(NOW - timedelta(days=45), NOW)
    assert result.label == "1 month"
    assert result.severity_tier == "aging"
    assert result.elapsed_days == 45


def test_stale_after_ninety_days():
    assert lead_duration(NOW - timedelta(days=90), NOW).severity_tier == "aging"
    assert lead_duration(NOW - timedelta(days=91), NOW).severity_tier == "stale"


def test_future_created_at_clamps_to_zero():
    result = lead_duration(NOW + timedelta(hours=3), NOW)
    assert result.label == "0 seconds"
    assert result.severity_tier == "fresh"
    assert result.elapsed_days == 0


def test_label_uses_largest_unit():
    assert duration_label(1) == "1 second"
    assert duration_label(59) == "59 seconds"
    assert duration_label(60) == "1 minute"
    assert duration_label(2 * 3600 + 59) == "2 hours"
    assert duration_label(86400) == "1 day"
    assert duration_label(29 * 86400) == "29 days"
    assert duration_label(65 * 86400) == "2 months"


def test_tier_boundaries():
    assert severity_for_days(29) == "fresh"
    assert severity_for_days(30) == "aging"
    assert severity_for_days(90) == "aging"
    assert severity_for_days(91) == "stale"


def test_tier_never_goes_backwards():
    order = {"fresh": 0, "aging": 1, "stale": 2}
    created = NOW - timedelta(days=1)
    previous = -1
    for hours in range(0, 24 * 120, 7):
        tier = lead_duration(created, NOW + timedelta(hours=hours)).severity_tier
        assert order[tier] >= previous
        previous = order[tier]
