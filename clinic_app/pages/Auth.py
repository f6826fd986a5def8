# pages/Auth.py — login + registration ("/auth")
import streamlit as st

from clinic_app.forms import submit_login, submit_registration
from clinic_app.session import ROLE_LABELS, Role
from clinic_app.shell import apply_outcome, get_context, page_frame

st.set_page_config(page_title="العيادة — تسجيل الدخول", page_icon="🩺", layout="centered")

ctx = get_context()
page_frame(ctx, "/auth", public=True)

st.markdown("<h2 style='text-align:center'>🩺 نظام إدارة العيادة</h2>", unsafe_allow_html=True)
st.markdown("<p style='text-align:center;opacity:.7'>سجل دخولك أو أنشئ حساباً جديداً</p>", unsafe_allow_html=True)

tab_login, tab_signup = st.tabs(["تسجيل الدخول", "إنشاء حساب"])

with tab_login:
    with st.form("login"):
        email = st.text_input("البريد الإلكتروني", placeholder="example@clinic.com")
        password = st.text_input("كلمة المرور", type="password", placeholder="••••••••")
        submitted = st.form_submit_button("تسجيل الدخول", use_container_width=True)
    if submitted:
        with st.spinner("جاري تسجيل الدخول..."):
            outcome = submit_login(ctx, email, password)
        apply_outcome(outcome)

with tab_signup:
    with st.form("signup"):
        full_name = st.text_input("الاسم الكامل", placeholder="أدخل اسمك الكامل")
        phone = st.text_input("رقم الهاتف", placeholder="05xxxxxxxx")
        su_email = st.text_input("البريد الإلكتروني", placeholder="example@clinic.com", key="su_email")
        su_password = st.text_input("كلمة المرور", type="password", placeholder="••••••••", key="su_password")
        role = st.radio(
            "الدور الوظيفي",
            [Role.DOCTOR.value, Role.SECRETARY.value],
            format_func=lambda r: ROLE_LABELS[Role(r)],
            horizontal=True,
        )
        su_submitted = st.form_submit_button("إنشاء حساب", use_container_width=True)
    if su_submitted:
        with st.spinner("جاري إنشاء الحساب..."):
            outcome = submit_registration(ctx, su_email, su_password, full_name, phone, role)
        apply_outcome(outcome)
