# pages/Patients.py — patient list with search ("/patients")
import streamlit as st

from clinic_app.common import format_date
from clinic_app.shell import get_context, header, navigate, open_view, page_frame
from clinic_app.views import READY, PatientListController

st.set_page_config(page_title="العيادة — المرضى", page_icon="🩺", layout="wide")

ctx = get_context()
page_frame(ctx, "/patients")

top = st.columns([6, 2])
with top[0]:
    header("المرضى", "إدارة سجلات المرضى")
with top[1]:
    if st.button("➕ إضافة مريض جديد", use_container_width=True):
        navigate("/patients/new")

view = open_view(ctx, "/patients", PatientListController)

# re-filtered from the full list on every keystroke-triggered rerun
query = st.text_input("بحث", placeholder="ابحث بالاسم، رقم الهاتف، أو البريد الإلكتروني...", label_visibility="collapsed")

if view.state != READY:
    st.info("تعذر تحميل المرضى.")
else:
    df = view.search(query)
    if df.empty:
        st.info("لم يتم العثور على نتائج" if query else "لا يوجد مرضى مسجلين")
    else:
        head = st.columns([4, 3, 4, 3, 2])
        for col, label in zip(head, ["الاسم", "رقم الهاتف", "البريد الإلكتروني", "تاريخ التسجيل", "الإجراءات"]):
            col.markdown(f"**{label}**")
        for _, row in df.iterrows():
            cols = st.columns([4, 3, 4, 3, 2])
            cols[0].write(row["full_name"])
            cols[1].write(row["phone"])
            cols[2].write(row["email"] or "-")
            cols[3].write(format_date(row["created_at"]))
            if cols[4].button("👁 عرض", key=f"open_{row['id']}"):
                navigate(f"/patients/{row['id']}")
