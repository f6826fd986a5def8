"""
View controller lifecycle and the concrete list/dashboard views.
"""

from datetime import datetime, timedelta, timezone

import pandas as pd
import pytz

from clinic_app.gateway import GatewayError
from clinic_app.views import (
    FAILED, IDLE, READY, VISIT_LIMIT,
    ViewHost,
    AppointmentListController, DashboardController, PatientDetailController,
    PatientListController, VisitListController, filter_patients,
)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


PATIENTS = [
    {"id": "p1", "full_name": "Ahmad Saleh", "phone": "0555123", "email": "ahmad@Mail.com", "created_at": "2025-01-01T10:00:00+00:00"},
    {"id": "p2", "full_name": "Sara Omar", "phone": "0666999", "email": None, "created_at": "2025-01-03T10:00:00+00:00"},
    {"id": "p3", "full_name": "Khaled", "phone": "0777", "email": "k@clinic.org", "created_at": "2025-01-02T10:00:00+00:00"},
]


def test_activation_without_identity_stays_idle(make_ctx, gateway):
    ctx = make_ctx(gateway)
    view = PatientListController(ctx)

    assert view.activate() == IDLE
    assert gateway.calls == []


def test_patient_list_ready_and_ordered_newest_first(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    view = PatientListController(ctx)

    assert view.activate() == READY
    assert list(view.data["id"]) == ["p2", "p3", "p1"]


def test_failed_fetch_notifies_and_does_not_retry(ctx, doctor_gateway, notifications):
    doctor_gateway.failures["select"] = GatewayError("boom", status=500)
    view = PatientListController(ctx)

    assert view.activate() == FAILED
    assert view.error.message == "boom"
    assert len([c for c in doctor_gateway.calls if c[0] == "select"]) == 1
    assert notifications == [("error", "خطأ", "فشل تحميل قائمة المرضى")]


def test_result_discarded_when_view_deactivated_mid_fetch(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    view = PatientListController(ctx)
    doctor_gateway.during_fetch = view.deactivate

    assert view.activate() == IDLE
    assert view.data is None


def test_reactivation_reruns_lifecycle(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS[:1])
    view = PatientListController(ctx)
    view.activate()
    doctor_gateway.tables["patients"] = list(PATIENTS)

    assert view.activate() == READY
    assert len(view.data) == 3


def test_search_matches_name_phone_email():
    df = pd.DataFrame(PATIENTS)

    assert list(filter_patients(df, "AHMAD")["id"]) == ["p1"]
    assert list(filter_patients(df, "0666")["id"]) == ["p2"]
    assert list(filter_patients(df, "mail.COM")["id"]) == ["p1"]
    assert list(filter_patients(df, "a")["id"]) == ["p1", "p2", "p3"]
    assert filter_patients(df, "nomatch").empty


def test_search_empty_query_returns_everything():
    df = pd.DataFrame(PATIENTS)
    assert filter_patients(df, "") is df


def test_search_is_not_cumulative(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    view = PatientListController(ctx)
    view.activate()

    assert len(view.search("Sara")) == 1
    assert len(view.search("Sar")) == 1
    assert len(view.search("")) == 3


def test_visits_capped_and_newest_first(ctx, doctor_gateway):
    base = _utc(2025, 1, 1, 9)
    doctor_gateway.tables["visits"] = [
        {"id": f"v{i}", "visit_date": base + timedelta(hours=i), "chief_complaint": "cough", "diagnosis": None,
         "patient_id": "p1", "patient": {"full_name": "Ahmad Saleh", "phone": "0555123"}}
        for i in range(60)
    ]
    view = VisitListController(ctx)
    view.activate()

    df = view.data
    assert len(df) <= VISIT_LIMIT
    assert df["visit_date"].is_monotonic_decreasing
    assert df.iloc[0]["patient_name"] == "Ahmad Saleh"
    assert "patient" not in df.columns
    select = [c for c in doctor_gateway.calls if c[0] == "select" and c[1] == "visits"][0]
    assert select[3:] == ("visit_date", False, VISIT_LIMIT)


def test_appointments_soonest_first_with_status_labels(ctx, doctor_gateway):
    doctor_gateway.tables["appointments"] = [
        {"id": "a2", "appointment_date": _utc(2025, 3, 2, 9), "purpose": "follow-up", "status": "confirmed",
         "duration_minutes": 30, "patient_id": "p1", "patient": {"full_name": "Ahmad", "phone": "0555"}},
        {"id": "a1", "appointment_date": _utc(2025, 3, 1, 9), "purpose": "checkup", "status": "no_show",
         "duration_minutes": 15, "patient_id": "p2", "patient": {"full_name": "Sara", "phone": "0666"}},
    ]
    view = AppointmentListController(ctx)
    view.activate()

    df = view.data
    assert list(df["id"]) == ["a1", "a2"]
    assert df["appointment_date"].is_monotonic_increasing
    assert list(df["status_label"]) == ["لم يحضر", "مؤكد"]


def test_empty_lists_still_have_columns(ctx):
    view = AppointmentListController(ctx)
    view.activate()
    assert view.state == READY
    assert view.data.empty
    assert "patient_name" in view.data.columns


def test_dashboard_counts_use_local_day_and_month(make_ctx, doctor_gateway):
    tz = pytz.timezone("Asia/Riyadh")  # UTC+3
    doctor_gateway.tables.update({
        "patients": list(PATIENTS),
        "appointments": [
            # 2025-03-15 00:30 local → today
            {"id": "a1", "appointment_date": _utc(2025, 3, 14, 21, 30), "status": "scheduled"},
            # 2025-03-14 23:30 local → yesterday
            {"id": "a2", "appointment_date": _utc(2025, 3, 14, 20, 30), "status": "scheduled"},
            # 2025-03-16 00:00 local → tomorrow, upcoming
            {"id": "a3", "appointment_date": _utc(2025, 3, 15, 21, 0), "status": "confirmed"},
            # later today but cancelled → today, not upcoming
            {"id": "a4", "appointment_date": _utc(2025, 3, 15, 15, 0), "status": "cancelled"},
        ],
        "visits": [
            {"id": "v1", "visit_date": _utc(2025, 2, 28, 21, 0)},  # 2025-03-01 00:00 local
            {"id": "v2", "visit_date": _utc(2025, 2, 28, 20, 59)},  # still February locally
        ],
    })
    ctx = make_ctx(doctor_gateway, clinic_tz="Asia/Riyadh")
    now = tz.localize(datetime(2025, 3, 15, 12, 0))
    view = DashboardController(ctx, clock=lambda: now)

    assert view.activate() == READY
    stats = view.data
    assert stats.total_patients == 3
    assert stats.today_appointments == 2
    assert stats.month_visits == 1
    assert stats.upcoming_appointments == 1


def test_patient_detail_found_and_missing(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)

    found = PatientDetailController(ctx, "p3")
    found.activate()
    assert found.found and found.data["full_name"] == "Khaled"

    missing = PatientDetailController(ctx, "nope")
    missing.activate()
    assert missing.state == READY and not missing.found


def test_identity_change_scopes_views(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    doctor_gateway.sign_out()
    view = PatientListController(ctx)

    assert view.activate() == IDLE


def _patient_selects(gw):
    return len([c for c in gw.calls if c[:2] == ("select", "patients")])


def _host(ctx):
    host = ViewHost()
    host.bind(ctx.session)
    return host


def test_host_reuses_the_fetched_view_across_reruns(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    host = _host(ctx)

    first = host.open(ctx, "/patients", PatientListController)
    again = host.open(ctx, "/patients", PatientListController)

    assert again is first
    assert list(again.search("Ahm")["id"]) == ["p1"]
    assert list(again.search("Ahma")["id"]) == ["p1"]
    assert _patient_selects(doctor_gateway) == 1


def test_host_refetches_when_the_page_is_entered_again(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    host = _host(ctx)
    first = host.open(ctx, "/patients", PatientListController)

    host.leave("/settings")
    assert first.state == IDLE

    second = host.open(ctx, "/patients", PatientListController)
    assert second is not first and second.state == READY
    assert _patient_selects(doctor_gateway) == 2


def test_host_keeps_view_on_the_same_route(ctx, doctor_gateway):
    host = _host(ctx)
    view = host.open(ctx, "/patients", PatientListController)

    host.leave("/patients")
    assert host.view is view and view.state == READY


def test_sign_out_deactivates_the_open_view(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    host = _host(ctx)
    view = host.open(ctx, "/patients", PatientListController)

    doctor_gateway.sign_out()

    assert view.state == IDLE
    assert host.view is None


def test_sign_out_during_fetch_discards_the_result(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    host = _host(ctx)
    doctor_gateway.during_fetch = doctor_gateway.sign_out

    view = host.open(ctx, "/patients", PatientListController)

    assert view.state == IDLE
    assert view.data is None
    assert host.view is None


def test_another_user_gets_a_fresh_view(ctx, doctor_gateway):
    doctor_gateway.tables["patients"] = list(PATIENTS)
    doctor_gateway.tables["user_roles"].append({"user_id": "sec-1", "role": "secretary"})
    doctor_gateway.accounts["sec@example.com"] = ("secret123", "sec-1")
    host = _host(ctx)
    first = host.open(ctx, "/patients", PatientListController)

    doctor_gateway.sign_in_with_password("sec@example.com", "secret123")
    second = host.open(ctx, "/patients", PatientListController)

    assert first.state == IDLE
    assert second is not first
    assert host.key == ("/patients", "sec-1")
