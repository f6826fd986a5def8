# clinic_app/shell.py — sidebar, header, auth guard and notifications shared by every page
from __future__ import annotations

import logging

import streamlit as st
import streamlit.components.v1 as components

from clinic_app.config import configure_logging, load_settings
from clinic_app.context import AppContext, build_context
from clinic_app.forms import Outcome
from clinic_app.gateway import GatewayError
from clinic_app.preferences import THEME_COOKIE
from clinic_app.routes import NAV_ITEMS, ROUTES, resolve
from clinic_app.session import role_label
from clinic_app.views import ViewController, ViewFactory, ViewHost

logger = logging.getLogger(__name__)

THEME_COOKIE_MAX_AGE = 365 * 24 * 3600

ICONS = {"success": "✅", "error": "⛔", "warning": "⚠️", "info": "ℹ️"}

# ---------- Colors ----------
THEMES = {
    "light": {"bg": "#F6FBFD", "ink": "#0F172A", "muted": "#667085", "card": "#FFFFFF", "side": "#ECF7F6"},
    "dark": {"bg": "#0B1220", "ink": "#E2E8F0", "muted": "#94A3B8", "card": "#111A2E", "side": "#0F1A2B"},
}


# ─────────────────────────────────────────────
# Notifications
# ─────────────────────────────────────────────
def notify(kind: str, title: str, body: str) -> None:
    st.toast(f"**{title}**  \n{body}", icon=ICONS.get(kind, "ℹ️"))


def flash(kind: str, title: str, body: str) -> None:
    """Queue a notification for the next page run (survives switch_page)."""
    st.session_state.setdefault("_flash", []).append((kind, title, body))


def show_flashes() -> None:
    for kind, title, body in st.session_state.pop("_flash", []):
        notify(kind, title, body)


def apply_outcome(outcome: Outcome) -> None:
    if outcome.redirect:
        flash(outcome.kind, outcome.title, outcome.message)
        navigate(outcome.redirect)
    else:
        notify(outcome.kind, outcome.title, outcome.message)


# ─────────────────────────────────────────────
# Context / navigation
# ─────────────────────────────────────────────
def get_context() -> AppContext:
    """One AppContext per browser session, built on first use."""
    ctx = st.session_state.get("ctx")
    if ctx is None:
        configure_logging()
        try:
            ctx = build_context(load_settings(), notify=notify, cookies=dict(st.context.cookies))
        except GatewayError as e:
            st.error(f"تعذر الاتصال بالخادم\n\n{e.message}")
            st.stop()
        st.session_state["ctx"] = ctx
    return ctx


def _view_host(ctx: AppContext) -> ViewHost:
    host = st.session_state.get("_views")
    if host is None:
        host = ViewHost()
        host.bind(ctx.session)
        st.session_state["_views"] = host
    return host


def navigate(path: str) -> None:
    page, params = resolve(path)
    st.session_state["route_params"] = params
    # put them in the URL so the target page survives a reload
    st.query_params.from_dict(params)
    st.switch_page(page)


def route_param(key: str, default: str = "") -> str:
    # URL first (shareable links), then whatever navigate() stashed
    v = st.query_params.get(key)
    if v:
        return str(v)
    v = st.session_state.get("route_params", {}).get(key)
    if not v:
        return default
    st.query_params[key] = v
    return str(v)


def open_view(ctx: AppContext, route: str, factory: ViewFactory) -> ViewController:
    """
    The controller for this page. It fetches on page entry and on identity
    change only; reruns from widget changes reuse the fetched data.
    """
    with st.spinner("جاري التحميل..."):
        return _view_host(ctx).open(ctx, route, factory)


def logout(ctx: AppContext) -> None:
    try:
        ctx.gateway.sign_out()
    except GatewayError as e:
        logger.warning("logout failed: %s", e.message)
        ctx.notify("error", "خطأ", "فشل تسجيل الخروج")
        return
    flash("success", "تم تسجيل الخروج", "إلى اللقاء")
    navigate("/auth")


# ─────────────────────────────────────────────
# Frame
# ─────────────────────────────────────────────
def apply_theme(ctx: AppContext) -> None:
    P = THEMES["dark" if ctx.preferences.dark else "light"]
    st.markdown(f"""
<style>
  .stApp{{background:{P['bg']};color:{P['ink']};direction:rtl;}}
  section[data-testid="stSidebar"]{{ background:{P['side']}; border-left:1px solid rgba(2,6,23,.06); }}
  .h-title{{font-weight:900;font-size:30px;margin:2px 0;color:{P['ink']};}}
  .h-sub{{color:{P['muted']};margin:0 0 12px;}}
  .stat-card{{background:{P['card']};border-radius:14px;padding:14px;box-shadow:0 10px 26px rgba(0,0,0,.08)}}
  .stat-card .v{{font-size:30px;font-weight:900;color:{P['ink']}}}
  .stat-card .t{{color:{P['muted']};font-size:14px}}
</style>
""", unsafe_allow_html=True)
    if ctx.preferences.dirty:
        _remember_theme(ctx.preferences.theme)
        ctx.preferences.dirty = False


def _remember_theme(theme: str) -> None:
    # the choice belongs to this browser only
    components.html(
        f"<script>window.parent.document.cookie = "
        f"'{THEME_COOKIE}={theme}; path=/; max-age={THEME_COOKIE_MAX_AGE}; SameSite=Lax';</script>",
        height=0,
    )


def header(title: str, subtitle: str = "") -> None:
    st.markdown(f"<div class='h-title'>{title}</div>", unsafe_allow_html=True)
    if subtitle:
        st.markdown(f"<div class='h-sub'>{subtitle}</div>", unsafe_allow_html=True)


def _sidebar(ctx: AppContext) -> None:
    with st.sidebar:
        st.markdown("### نظام إدارة العيادة")
        st.caption("القائمة الرئيسية")
        for path, label, icon in NAV_ITEMS:
            st.page_link(ROUTES[path], label=label, icon=icon)

        st.divider()
        identity = ctx.session.identity
        if identity is not None:
            st.markdown(f"**{identity.email}**")
            st.caption(role_label(ctx.session.role))
        if st.button("تسجيل الخروج", key="logout", use_container_width=True):
            logout(ctx)


def page_frame(ctx: AppContext, route: str, *, public: bool = False) -> None:
    """
    Theme, pending notifications, auth guard and the sidebar.
    `route` is the path of the page being rendered; the previous page's view
    is deactivated when it differs.
    public=True is the auth page: signed-in users are sent home instead.
    """
    _view_host(ctx).leave(route)
    apply_theme(ctx)
    show_flashes()

    # refresh an expired token (fires TOKEN_REFRESHED / SIGNED_OUT on the store)
    try:
        ctx.gateway.get_session()
    except GatewayError as e:
        logger.warning("session refresh failed: %s", e.message)

    if public:
        if ctx.session.authenticated:
            navigate("/")
        return
    if not ctx.session.authenticated:
        navigate("/auth")

    _sidebar(ctx)
    _, toggle_col = st.columns([10, 1])
    with toggle_col:
        if st.button("🌙" if not ctx.preferences.dark else "☀️", key="theme_toggle", help="الوضع الليلي / النهاري"):
            ctx.preferences.toggle_theme()
            st.rerun()
