# clinic_app/forms.py — validate, pre-check, write, then say where to go
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from clinic_app.context import AppContext
from clinic_app.gateway import GatewayError
from clinic_app.session import Role

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

PATIENT_FIELDS = (
    "full_name", "phone", "email", "date_of_birth", "gender", "address", "blood_type",
    "emergency_contact_name", "emergency_contact_phone", "notes",
)
GENDERS = {"male": "ذكر", "female": "أنثى"}
BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

# gateway message → what the user sees
KNOWN_AUTH_ERRORS = {
    "Invalid login credentials": "بيانات الدخول غير صحيحة",
    "User already registered": "المستخدم مسجل مسبقاً",
    "Role assignment failed": "فشل تعيين الدور",
}
UNIQUE_VIOLATION = "23505"

TITLE_ERROR = "خطأ"
TITLE_WARNING = "تنبيه"


@dataclass
class Outcome:
    ok: bool
    kind: str
    title: str
    message: str
    redirect: Optional[str] = None


def _failure(message: str, title: str = TITLE_ERROR) -> Outcome:
    return Outcome(ok=False, kind="error", title=title, message=message)


def localize_auth_error(err: GatewayError) -> str:
    return KNOWN_AUTH_ERRORS.get(err.message, err.message)


# ─────────────────────────────────────────────
# Login
# ─────────────────────────────────────────────
def submit_login(ctx: AppContext, email: str, password: str) -> Outcome:
    email = (email or "").strip()
    if not email or not password:
        return _failure("الرجاء إدخال البريد الإلكتروني وكلمة المرور")

    try:
        ctx.gateway.sign_in_with_password(email, password)
    except GatewayError as e:
        return _failure(localize_auth_error(e), title="فشل تسجيل الدخول")

    return Outcome(ok=True, kind="success", title="تم تسجيل الدخول بنجاح", message="مرحباً بك", redirect="/")


# ─────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────
def validate_registration(email: str, password: str, full_name: str, phone: str, role: str) -> Optional[str]:
    if not email or not password or not full_name or not phone:
        return "الرجاء ملء جميع الحقول المطلوبة"
    if len(password) < MIN_PASSWORD_LENGTH:
        return "كلمة المرور يجب أن تكون 6 أحرف على الأقل"
    if role not in (Role.DOCTOR.value, Role.SECRETARY.value):
        return "الرجاء اختيار الدور الوظيفي"
    return None


def submit_registration(ctx: AppContext, email: str, password: str, full_name: str, phone: str, role: str) -> Outcome:
    """
    The account and its role are created together by the provisioning
    service; any failure there (including the role step) is a failure here.
    On success the new user is signed in.
    """
    email = (email or "").strip()
    full_name = (full_name or "").strip()
    phone = (phone or "").strip()
    problem = validate_registration(email, password or "", full_name, phone, role)
    if problem:
        return _failure(problem)

    try:
        identity = ctx.gateway.register(email, password, full_name=full_name, phone=phone, role=role)
    except GatewayError as e:
        logger.warning("registration failed for %s: %s", email, e.message)
        return _failure(localize_auth_error(e), title="فشل إنشاء الحساب")
    logger.info("registered %s as %s", identity.id, role)

    try:
        ctx.gateway.sign_in_with_password(email, password)
    except GatewayError as e:
        return _failure(localize_auth_error(e), title="فشل تسجيل الدخول")

    return Outcome(
        ok=True, kind="success", title="تم إنشاء الحساب بنجاح", message="جاري تسجيل الدخول...", redirect="/"
    )


# ─────────────────────────────────────────────
# Patient intake
# ─────────────────────────────────────────────
def clean_patient_form(form: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Known fields only, stripped; blanks become None so the column stays null."""
    row: Dict[str, Optional[str]] = {}
    for key in PATIENT_FIELDS:
        value = form.get(key)
        if value is not None and not isinstance(value, str):
            value = value.isoformat() if hasattr(value, "isoformat") else str(value)
        value = (value or "").strip()
        row[key] = value or None
    return row


def submit_patient(ctx: AppContext, form: Mapping[str, Any]) -> Outcome:
    """
    The phone pre-check is advisory; the database's unique constraint on
    phone is what actually prevents duplicates.
    """
    identity = ctx.session.identity
    if identity is None:
        return _failure("الرجاء تسجيل الدخول أولاً")

    row = clean_patient_form(form)
    if not row["full_name"] or not row["phone"]:
        return _failure("الرجاء إدخال الاسم ورقم الهاتف على الأقل")

    duplicate = Outcome(ok=False, kind="warning", title=TITLE_WARNING, message="مريض بنفس رقم الهاتف موجود بالفعل")
    try:
        existing = ctx.gateway.maybe_single("patients", "id", filters=[("phone", "eq", row["phone"])])
    except GatewayError as e:
        logger.warning("duplicate check failed, relying on the database constraint: %s", e.message)
        existing = None
    if existing:
        return duplicate

    try:
        created = ctx.gateway.insert("patients", dict(row, created_by=identity.id))
    except GatewayError as e:
        if e.code == UNIQUE_VIOLATION:
            return duplicate
        return _failure("فشل إضافة المريض")

    return Outcome(
        ok=True, kind="success", title="نجح", message="تم إضافة المريض بنجاح", redirect=f"/patients/{created['id']}"
    )
