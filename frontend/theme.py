"""
Tenny Ledger: shared look and wiring
CSS, formatting shortcuts, and the per-browser-session API objects
(Session, ApiClient, QueryCache) every page pulls from st.session_state.
"""

import streamlit as st

from tenny.config import configure_logging, settings
from tenny.errors import ApiError, AuthExpiredError
from tenny.hooks.query import Query
from tenny.services.api_client import ApiClient
from tenny.services.query_cache import QueryCache
from tenny.services.session import Session
from tenny.utils.format import fmt_date, money

configure_logging()

BACKEND_URL = settings.API_URL
LOGIN_PAGE = "pages/0_🔐_Login.py"
DASHBOARD_PAGE = "pages/1_📊_Dashboard.py"
NEW_TRANSACTION_PAGE = "pages/3_➕_New_Transaction.py"
DETAIL_PAGE = "pages/4_🧾_Transaction_Detail.py"

DEFAULT_PREFS = {"currency": "USD", "date_format": "MM/DD/YYYY", "notifications": True}


# ── Session wiring ──────────────────────────────────────
def _drop_cached_data() -> None:
    get_cache().clear()


def get_session() -> Session:
    if "session" not in st.session_state:
        st.session_state["session"] = Session.from_settings(on_unauthorized=_drop_cached_data)
    return st.session_state["session"]


def get_client() -> ApiClient:
    if "api_client" not in st.session_state:
        st.session_state["api_client"] = ApiClient(get_session())
    return st.session_state["api_client"]


def get_cache() -> QueryCache:
    if "query_cache" not in st.session_state:
        st.session_state["query_cache"] = QueryCache()
    return st.session_state["query_cache"]


def prefs() -> dict:
    if "prefs" not in st.session_state:
        st.session_state["prefs"] = dict(DEFAULT_PREFS)
    return st.session_state["prefs"]


def require_login() -> Session:
    """Send anonymous or expired visitors to the login page."""
    session = get_session()
    if not session.is_authenticated:
        get_cache().clear()
        st.switch_page(LOGIN_PAGE)
    return session


def show_api_error(e: ApiError, what: str = "Request failed") -> None:
    if isinstance(e, AuthExpiredError):
        get_cache().clear()
        st.switch_page(LOGIN_PAGE)
    st.error(f"{what}: {e.message}")


def show_query_error(q: Query, what: str) -> bool:
    if q.error is None:
        return False
    if isinstance(q.error, AuthExpiredError):
        show_api_error(q.error, what)
    st.error(f"{what}: {q.error_message}")
    return True


# ── Formatting shortcuts bound to the user's preferences ─
def cur(x) -> str:
    return money(x, prefs()["currency"])


def day(s: str) -> str:
    return fmt_date(s, prefs()["date_format"])


# ── Master CSS ──────────────────────────────────────────
LEDGER_CSS = """
<style>
:root {
    --bg-primary:  #0F172A;
    --bg-card:     #111C33;
    --border:      #23324F;
    --accent:      #3B82F6;
    --accent-glow: rgba(59,130,246,0.15);
    --green:       #22C55E;
    --purple:      #A855F7;
    --red:         #EF4444;
    --text:        #F1F5F9;
    --text-muted:  #94A3B8;
    --radius:      12px;
}

.stApp,
div[data-testid="stAppViewContainer"] {
    background-color: var(--bg-primary) !important;
    color: var(--text);
}

div[data-testid="metric-container"] {
    background: var(--bg-card);
    border: 1px solid var(--border);
    border-left: 4px solid var(--accent);
    border-radius: var(--radius);
    padding: 16px 20px;
}
div[data-testid="metric-container"] label {
    color: var(--text-muted) !important;
    font-size: 13px !important;
    text-transform: uppercase;
}

.stButton > button {
    border-radius: 8px !important;
    font-weight: 600 !important;
}

.page-title {
    font-size: 30px;
    font-weight: 800;
    color: var(--text);
    margin-bottom: 4px;
}
.page-subtitle {
    color: var(--text-muted);
    font-size: 14px;
    margin-bottom: 20px;
}

.tl-card {
    background: var(--bg-card);
    border: 1px solid var(--border);
    border-radius: var(--radius);
    padding: 16px 20px;
    margin-bottom: 10px;
}

.cat-row { display:flex; align-items:center; gap:12px; margin:6px 0; }
.cat-name { width: 160px; font-weight: 600; color: var(--text); }
.cat-track { flex:1; height: 12px; background: var(--border); border-radius: 6px; overflow: hidden; }
.cat-fill { height: 100%; background: var(--accent); border-radius: 6px; }
.cat-amt { width: 110px; text-align: right; color: var(--text); }

.pill {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 999px;
    font-size: 12px;
    font-weight: 600;
    background: var(--accent-glow);
    border: 1px solid var(--accent);
    color: var(--accent);
}

.stFileUploader {
    border: 2px dashed var(--border) !important;
    border-radius: var(--radius) !important;
}
</style>
"""


def inject_css():
    st.markdown(LEDGER_CSS, unsafe_allow_html=True)


def page_header(title: str, subtitle: str = "") -> None:
    st.markdown(f'<div class="page-title">{title}</div>', unsafe_allow_html=True)
    if subtitle:
        st.markdown(f'<div class="page-subtitle">{subtitle}</div>', unsafe_allow_html=True)


def category_bars(rows, currency_fmt=cur) -> None:
    html = ""
    for r in rows:
        width = min(100.0, r.percentage)
        html += (
            f'<div class="cat-row"><div class="cat-name">{r.category}</div>'
            f'<div class="cat-track"><div class="cat-fill" style="width:{width:.1f}%"></div></div>'
            f'<div class="cat-amt">{currency_fmt(r.amount)}</div></div>'
        )
    st.markdown(html, unsafe_allow_html=True)


# ── Chart theme defaults ────────────────────────────────
CHART_LAYOUT = dict(
    template="plotly_dark",
    paper_bgcolor="#0F172A",
    plot_bgcolor="#111C33",
    font_color="#F1F5F9",
    margin=dict(l=20, r=20, t=20, b=20),
)

COLORS = {
    "accent": "#3B82F6",
    "green": "#22C55E",
    "purple": "#A855F7",
    "red": "#EF4444",
    "yellow": "#EAB308",
}

