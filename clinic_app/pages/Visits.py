# pages/Visits.py — latest visits ("/visits")
import streamlit as st

from clinic_app.common import format_date
from clinic_app.shell import get_context, header, open_view, page_frame
from clinic_app.views import READY, VisitListController

st.set_page_config(page_title="العيادة — الزيارات", page_icon="🩺", layout="wide")

ctx = get_context()
page_frame(ctx, "/visits")

header("الزيارات", "سجل زيارات المرضى")

view = open_view(ctx, "/visits", VisitListController)

if view.state == READY:
    df = view.data
    if df.empty:
        st.info("لا توجد زيارات مسجلة")
    else:
        table = df.assign(
            visit_date=df["visit_date"].map(lambda t: format_date(t, with_time=True)),
            diagnosis=df["diagnosis"].fillna("لم يحدد بعد"),
        )[["patient_name", "patient_phone", "visit_date", "chief_complaint", "diagnosis"]]
        st.dataframe(
            table.rename(columns={
                "patient_name": "المريض", "patient_phone": "رقم الهاتف", "visit_date": "تاريخ الزيارة",
                "chief_complaint": "الشكوى الرئيسية", "diagnosis": "التشخيص",
            }),
            use_container_width=True, hide_index=True,
        )
