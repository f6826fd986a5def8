"""Streamlit front-end for the clinic: patients, visits, appointments and auth."""
