# clinic_app/routes.py — app paths ↔ Streamlit page scripts
from __future__ import annotations

from typing import Dict, Tuple

# paths relative to the main script (Home.py)
ROUTES: Dict[str, str] = {
    "/": "Home.py",
    "/auth": "pages/Auth.py",
    "/patients": "pages/Patients.py",
    "/patients/new": "pages/New_Patient.py",
    "/visits": "pages/Visits.py",
    "/appointments": "pages/Appointments.py",
    "/settings": "pages/Settings.py",
}
PATIENT_DETAIL_PAGE = "pages/Patient.py"

# sidebar order
NAV_ITEMS = [
    ("/", "الرئيسية", "🏠"),
    ("/patients", "المرضى", "👥"),
    ("/visits", "الزيارات", "📋"),
    ("/appointments", "المواعيد", "📅"),
    ("/settings", "الإعدادات", "⚙️"),
]


def resolve(path: str) -> Tuple[str, Dict[str, str]]:
    """
    "/patients/abc" → ("pages/Patient.py", {"id": "abc"})
    Unknown paths raise KeyError.
    """
    path = "/" + path.strip("/")
    if path in ROUTES:
        return ROUTES[path], {}
    parts = path.strip("/").split("/")
    if len(parts) == 2 and parts[0] == "patients" and parts[1]:
        return PATIENT_DETAIL_PAGE, {"id": parts[1]}
    raise KeyError(path)
