import httpx
import streamlit as st

from theme import BACKEND_URL, get_session, inject_css, page_header

st.set_page_config(
    page_title="Tenny Ledger | Bills & Spending",
    page_icon="🧾",
    layout="wide",
)
inject_css()

page_header("🧾 Tenny Ledger", "Scan bills, track transactions and see where your money goes")

session = get_session()
if session.is_authenticated:
    name = (session.user or {}).get("name")
    st.success(f"Logged in{f' as {name}' if name else ''}.")
else:
    st.info("Log in or create an account to get started.")
    st.page_link("pages/0_🔐_Login.py", label="🔐 Log in / Register")

st.divider()

row1 = st.columns(4)
with row1[0]:
    st.page_link("pages/1_📊_Dashboard.py", label="📊 Dashboard", use_container_width=True)
with row1[1]:
    st.page_link("pages/2_💳_Transactions.py", label="💳 Transactions", use_container_width=True)
with row1[2]:
    st.page_link("pages/3_➕_New_Transaction.py", label="➕ Add Transaction", use_container_width=True)
with row1[3]:
    st.page_link("pages/5_📸_Upload_Bill.py", label="📸 Upload Bill", use_container_width=True)
row2 = st.columns(3)
with row2[0]:
    st.page_link("pages/6_📈_Reports.py", label="📈 Reports", use_container_width=True)
with row2[1]:
    st.page_link("pages/7_⚙️_Settings.py", label="⚙️ Settings", use_container_width=True)
with row2[2]:
    st.page_link("pages/8_👤_Profile.py", label="👤 Profile", use_container_width=True)

st.divider()

# ── System Status ───────────────────────────────────────
st.markdown("### System Status")

try:
    with httpx.Client(timeout=5) as c:
        c.get(BACKEND_URL)
    up = True
except httpx.HTTPError:
    up = False

color = "#22C55E" if up else "#EF4444"
icon = "●" if up else "○"
r_c, g_c, b_c = (int(color.lstrip("#")[i:i + 2], 16) for i in (0, 2, 4))
st.markdown(
    f'<span style="display:inline-block;padding:4px 12px;border-radius:999px;'
    f'background:rgba({r_c},{g_c},{b_c},0.15);border:1px solid {color};color:{color};'
    f'font-size:13px;font-weight:600">{icon} Backend {"online" if up else "unreachable"} · {BACKEND_URL}</span>',
    unsafe_allow_html=True,
)
