# clinic_app/views.py — per-page fetch lifecycle: idle → loading → ready | failed
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import pandas as pd

from clinic_app.common import convert_tz, frame, local_day_bounds, local_now, month_start
from clinic_app.context import AppContext
from clinic_app.gateway import Gateway, GatewayError
from clinic_app.session import SessionStore

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
READY = "ready"
FAILED = "failed"

VISIT_LIMIT = 50
PATIENT_EMBED = "patient:patients(full_name,phone)"

PATIENT_COLUMNS = [
    "id", "full_name", "phone", "email", "date_of_birth", "gender", "address", "blood_type",
    "emergency_contact_name", "emergency_contact_phone", "notes", "created_by", "created_at",
]
VISIT_COLUMNS = ["id", "visit_date", "chief_complaint", "diagnosis", "patient_id", "patient_name", "patient_phone"]
APPOINTMENT_COLUMNS = [
    "id", "appointment_date", "purpose", "status", "status_label", "duration_minutes",
    "patient_id", "patient_name", "patient_phone",
]

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled", "no_show")
STATUS_LABELS = {
    "scheduled": "مجدول",
    "confirmed": "مؤكد",
    "completed": "مكتمل",
    "cancelled": "ملغى",
    "no_show": "لم يحضر",
}
UPCOMING_STATUSES = ("scheduled", "confirmed")

ERROR_TITLE = "خطأ"


class CancellationToken:
    """Marks a fetch whose view went away; its result must not be applied."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ViewController:
    """
    Fetch/render lifecycle shared by the data pages.

    activate() runs one fetch when there is a signed-in identity and
    leaves the controller `idle` otherwise. deactivate() cancels the
    in-flight fetch; a result that lands after that is dropped. Failures
    end in `failed` with a notification and are not retried here.
    """

    error_message = "فشل تحميل البيانات"

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.state = IDLE
        self.data: Any = None
        self.error: Optional[GatewayError] = None
        self._token: Optional[CancellationToken] = None

    def fetch(self, gateway: Gateway) -> Any:
        raise NotImplementedError

    def activate(self) -> str:
        self.deactivate()
        self.error = None
        if self.ctx.session.identity is None:
            return self.state

        token = CancellationToken()
        self._token = token
        self.state = LOADING
        try:
            result = self.fetch(self.ctx.gateway)
        except GatewayError as e:
            if token.cancelled:
                return self.state
            logger.warning("%s fetch failed: %s", type(self).__name__, e.message)
            self._token = None
            self.state = FAILED
            self.error = e
            self.ctx.notify("error", ERROR_TITLE, self.error_message)
            return self.state

        if token.cancelled:
            logger.debug("%s: discarding result of a cancelled fetch", type(self).__name__)
            return self.state
        self._token = None
        self.data = result
        self.state = READY
        return self.state

    def deactivate(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self.state = IDLE


ViewFactory = Callable[[AppContext], ViewController]


class ViewHost:
    """
    Holds the one controller on screen, keyed by (route, identity id).

    Streamlit reruns the page script on every widget change; open() hands
    back the controller already fetched for this route and user instead of
    fetching again. Entering another route or an identity change (sign-out,
    different user) deactivates it.
    """

    def __init__(self) -> None:
        self.key: Optional[Tuple[str, Optional[str]]] = None
        self.view: Optional[ViewController] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def bind(self, session: SessionStore) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = session.subscribe(self._on_session)

    def _on_session(self, session: SessionStore) -> None:
        owner = session.identity.id if session.identity else None
        if self.key is not None and self.key[1] != owner:
            logger.info("identity changed; deactivating view for %s", self.key[0])
            self.clear()

    def open(self, ctx: AppContext, route: str, factory: ViewFactory) -> ViewController:
        identity = ctx.session.identity
        key = (route, identity.id if identity else None)
        if self.view is not None and self.key == key:
            return self.view

        self.clear()
        view = factory(ctx)
        self.key = key
        self.view = view
        view.activate()
        return view

    def leave(self, route: str) -> None:
        """Called on every page run; a different route means the old view is gone."""
        if self.key is not None and self.key[0] != route:
            self.clear()

    def clear(self) -> None:
        if self.view is not None:
            self.view.deactivate()
        self.view = None
        self.key = None


def _flatten_patient(df: pd.DataFrame) -> pd.DataFrame:
    """Lift the embedded `patient` object into patient_name / patient_phone."""
    if "patient" in df.columns:
        patients = df["patient"].apply(lambda p: p if isinstance(p, dict) else {})
        df["patient_name"] = patients.apply(lambda p: p.get("full_name"))
        df["patient_phone"] = patients.apply(lambda p: p.get("phone"))
        df = df.drop(columns=["patient"])
    return df


# ─────────────────────────────────────────────
# Dashboard
# ─────────────────────────────────────────────
@dataclass
class DashboardStats:
    total_patients: int = 0
    today_appointments: int = 0
    month_visits: int = 0
    upcoming_appointments: int = 0


class DashboardController(ViewController):
    error_message = "فشل تحميل الإحصائيات"

    def __init__(self, ctx: AppContext, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(ctx)
        self._clock = clock

    def fetch(self, gateway: Gateway) -> DashboardStats:
        tz = self.ctx.settings.clinic_tz
        now = local_now(tz, self._clock() if self._clock else None)
        day_start, day_end = local_day_bounds(tz, now)
        first_of_month = month_start(tz, now)

        return DashboardStats(
            total_patients=gateway.count("patients"),
            today_appointments=gateway.count(
                "appointments",
                filters=[("appointment_date", "gte", day_start), ("appointment_date", "lt", day_end)],
            ),
            month_visits=gateway.count("visits", filters=[("visit_date", "gte", first_of_month)]),
            upcoming_appointments=gateway.count(
                "appointments",
                filters=[("appointment_date", "gte", now), ("status", "in", UPCOMING_STATUSES)],
            ),
        )


# ─────────────────────────────────────────────
# Patients
# ─────────────────────────────────────────────
def filter_patients(df: pd.DataFrame, query: str) -> pd.DataFrame:
    """
    Substring search over the full fetched list: name and email ignore
    case, phone is matched as typed. An empty query returns everything.
    """
    if df is None or df.empty or not query:
        return df
    q = query.lower()
    name = df["full_name"].fillna("").astype(str).str.lower().str.contains(q, regex=False)
    phone = df["phone"].fillna("").astype(str).str.contains(query, regex=False)
    email = df["email"].fillna("").astype(str).str.lower().str.contains(q, regex=False)
    return df[name | phone | email]


class PatientListController(ViewController):
    error_message = "فشل تحميل قائمة المرضى"

    def fetch(self, gateway: Gateway) -> pd.DataFrame:
        rows = gateway.select("patients", order="created_at", ascending=False)
        return frame(rows, PATIENT_COLUMNS)

    def search(self, query: str) -> pd.DataFrame:
        if self.data is None:
            return frame([], PATIENT_COLUMNS)
        return filter_patients(self.data, query)


class PatientDetailController(ViewController):
    error_message = "فشل تحميل بيانات المريض"

    def __init__(self, ctx: AppContext, patient_id: str):
        super().__init__(ctx)
        self.patient_id = patient_id

    def fetch(self, gateway: Gateway) -> Optional[Dict[str, Any]]:
        if not self.patient_id:
            return None
        return gateway.maybe_single("patients", filters=[("id", "eq", self.patient_id)])

    @property
    def found(self) -> bool:
        return self.state == READY and self.data is not None


# ─────────────────────────────────────────────
# Visits / appointments
# ─────────────────────────────────────────────
class VisitListController(ViewController):
    error_message = "فشل تحميل قائمة الزيارات"

    def fetch(self, gateway: Gateway) -> pd.DataFrame:
        rows = gateway.select(
            "visits",
            f"*,{PATIENT_EMBED}",
            order="visit_date",
            ascending=False,
            limit=VISIT_LIMIT,
        )
        df = _flatten_patient(frame(rows[:VISIT_LIMIT], VISIT_COLUMNS))
        df["visit_date"] = convert_tz(df["visit_date"], self.ctx.settings.clinic_tz)
        return df


class AppointmentListController(ViewController):
    error_message = "فشل تحميل قائمة المواعيد"

    def fetch(self, gateway: Gateway) -> pd.DataFrame:
        rows = gateway.select(
            "appointments",
            f"*,{PATIENT_EMBED}",
            order="appointment_date",
            ascending=True,
        )
        df = _flatten_patient(frame(rows, APPOINTMENT_COLUMNS))
        df["appointment_date"] = convert_tz(df["appointment_date"], self.ctx.settings.clinic_tz)
        df["status_label"] = df["status"].map(lambda s: STATUS_LABELS.get(s, s))
        return df
