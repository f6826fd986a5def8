# pages/New_Patient.py — patient intake form ("/patients/new")
import streamlit as st

from clinic_app.forms import BLOOD_TYPES, GENDERS, submit_patient
from clinic_app.shell import apply_outcome, get_context, header, navigate, page_frame

st.set_page_config(page_title="العيادة — مريض جديد", page_icon="🩺", layout="wide")

ctx = get_context()
page_frame(ctx, "/patients/new")

if st.button("→ رجوع"):
    navigate("/patients")
header("إضافة مريض جديد", "إدخال بيانات مريض جديد")

with st.form("new_patient"):
    st.subheader("المعلومات الأساسية")
    c1, c2 = st.columns(2)
    full_name = c1.text_input("الاسم الكامل *")
    phone = c2.text_input("رقم الهاتف *")
    email = c1.text_input("البريد الإلكتروني")
    date_of_birth = c2.date_input("تاريخ الميلاد", value=None, format="YYYY-MM-DD")
    gender = c1.selectbox("الجنس", list(GENDERS), index=None, format_func=GENDERS.get, placeholder="اختر الجنس")
    blood_type = c2.selectbox("فصيلة الدم", BLOOD_TYPES, index=None, placeholder="اختر فصيلة الدم")
    address = st.text_input("العنوان")
    c3, c4 = st.columns(2)
    emergency_contact_name = c3.text_input("اسم جهة الاتصال للطوارئ")
    emergency_contact_phone = c4.text_input("رقم جهة الاتصال للطوارئ")
    notes = st.text_area("ملاحظات", height=120)
    submitted = st.form_submit_button("حفظ المريض")

if submitted:
    with st.spinner("جاري الحفظ..."):
        outcome = submit_patient(ctx, {
            "full_name": full_name,
            "phone": phone,
            "email": email,
            "date_of_birth": date_of_birth,
            "gender": gender,
            "address": address,
            "blood_type": blood_type,
            "emergency_contact_name": emergency_contact_name,
            "emergency_contact_phone": emergency_contact_phone,
            "notes": notes,
        })
    apply_outcome(outcome)
