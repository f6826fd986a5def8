# pages/Appointments.py — appointments, soonest first ("/appointments")
import pandas as pd
import streamlit as st

from clinic_app.common import format_date
from clinic_app.shell import get_context, header, open_view, page_frame
from clinic_app.views import READY, AppointmentListController

st.set_page_config(page_title="العيادة — المواعيد", page_icon="🩺", layout="wide")

ctx = get_context()
page_frame(ctx, "/appointments")

header("المواعيد", "جدول مواعيد المرضى")

view = open_view(ctx, "/appointments", AppointmentListController)

if view.state == READY:
    df = view.data
    if df.empty:
        st.info("لا توجد مواعيد مسجلة")
    else:
        table = df.assign(
            appointment_date=df["appointment_date"].map(lambda t: format_date(t, with_time=True)),
            duration_minutes=df["duration_minutes"].map(lambda m: f"{int(m)} دقيقة" if pd.notna(m) else "-"),
        )[["patient_name", "patient_phone", "appointment_date", "purpose", "duration_minutes", "status_label"]]
        st.dataframe(
            table.rename(columns={
                "patient_name": "المريض", "patient_phone": "رقم الهاتف", "appointment_date": "الموعد",
                "purpose": "الغرض", "duration_minutes": "المدة", "status_label": "الحالة",
            }),
            use_container_width=True, hide_index=True,
        )
