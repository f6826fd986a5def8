# pages/Settings.py — account info and display preference ("/settings")
import streamlit as st

from clinic_app.session import role_label
from clinic_app.shell import get_context, header, page_frame

st.set_page_config(page_title="العيادة — الإعدادات", page_icon="🩺", layout="wide")

ctx = get_context()
page_frame(ctx, "/settings")

header("الإعدادات", "إدارة إعدادات النظام")

with st.container(border=True):
    st.subheader("الحساب")
    st.caption("البريد الإلكتروني")
    st.write(ctx.session.identity.email if ctx.session.identity else "-")
    st.caption("الدور الوظيفي")
    st.write(role_label(ctx.session.role))

with st.container(border=True):
    st.subheader("المظهر")
    dark = st.toggle("الوضع الليلي", value=ctx.preferences.dark)
    if dark != ctx.preferences.dark:
        ctx.preferences.toggle_theme()
        st.rerun()
