# clinic_app/Home.py — dashboard ("/")
import streamlit as st

from clinic_app.shell import get_context, header, open_view, page_frame
from clinic_app.views import READY, DashboardController, DashboardStats

st.set_page_config(page_title="العيادة — الرئيسية", page_icon="🩺", layout="wide")

ctx = get_context()
page_frame(ctx, "/")

header("لوحة التحكم", "نظرة عامة على نشاط العيادة")

view = open_view(ctx, "/", DashboardController)
stats = view.data if view.state == READY else DashboardStats()

cards = [
    ("إجمالي المرضى", stats.total_patients),
    ("مواعيد اليوم", stats.today_appointments),
    ("زيارات هذا الشهر", stats.month_visits),
    ("المواعيد القادمة", stats.upcoming_appointments),
]
cols = st.columns(len(cards))
for col, (title, value) in zip(cols, cards):
    with col:
        st.markdown(
            f"<div class='stat-card'><div class='t'>{title}</div><div class='v'>{value}</div></div>",
            unsafe_allow_html=True,
        )

st.write("")
c1, c2 = st.columns(2)
with c1, st.container(border=True):
    st.subheader("النشاطات الأخيرة")
    st.caption("لا توجد أنشطة حديثة")
with c2, st.container(border=True):
    st.subheader("الإشعارات")
    st.caption("لا توجد إشعارات جديدة")
