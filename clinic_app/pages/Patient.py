# pages/Patient.py — single patient record ("/patients/:id")
import streamlit as st

from clinic_app.common import format_date
from clinic_app.forms import GENDERS
from clinic_app.shell import get_context, header, navigate, open_view, page_frame, route_param
from clinic_app.views import FAILED, PatientDetailController

st.set_page_config(page_title="العيادة — ملف المريض", page_icon="🩺", layout="wide")

ctx = get_context()
patient_id = route_param("id")
route = f"/patients/{patient_id}"
page_frame(ctx, route)

if st.button("→ رجوع"):
    navigate("/patients")

view = open_view(ctx, route, lambda c: PatientDetailController(c, patient_id))

if view.state == FAILED:
    st.stop()
if not view.found:
    st.info("لم يتم العثور على المريض")
    st.stop()

p = view.data
header(p.get("full_name") or "-", f"مسجل منذ {format_date(p.get('created_at'))}")

FIELDS = [
    ("رقم الهاتف", p.get("phone")),
    ("البريد الإلكتروني", p.get("email")),
    ("تاريخ الميلاد", format_date(p.get("date_of_birth")) if p.get("date_of_birth") else None),
    ("الجنس", GENDERS.get(p.get("gender"), p.get("gender"))),
    ("فصيلة الدم", p.get("blood_type")),
    ("العنوان", p.get("address")),
    ("اسم جهة الاتصال للطوارئ", p.get("emergency_contact_name")),
    ("رقم جهة الاتصال للطوارئ", p.get("emergency_contact_phone")),
]

with st.container(border=True):
    cols = st.columns(2)
    for i, (label, value) in enumerate(FIELDS):
        with cols[i % 2]:
            st.caption(label)
            st.write(value or "-")

if p.get("notes"):
    with st.container(border=True):
        st.caption("ملاحظات")
        st.write(p["notes"])
