import os
import streamlit as st
import pandas as pd
import requests

# Prefer the modern graph_objects import, fallback to graph_objs for older installs
try:
    import plotly.graph_objects as go
except ImportError:
    import plotly.graph_objs as go


def _ensure_running_under_streamlit():
    """If not already running under Streamlit, re-launch with `streamlit run`.

    This avoids the repeated "missing ScriptRunContext" warnings when users
    accidentally run `python app.py` instead of `streamlit run app.py`.
    """
    try:
        from streamlit.runtime.scriptrunner import get_script_run_ctx
        if get_script_run_ctx() is not None:
            return
    except ImportError:
        pass

    import sys
    import subprocess
    script = os.path.abspath(__file__)
    # Avoid infinite relaunch loops by checking an env var
    if os.environ.get("_EVINSIGHT_LAUNCHED_WITH_STREAMLIT") != "1":
        print("Re-launching with: streamlit run", script)
        env = os.environ.copy()
        env["_EVINSIGHT_LAUNCHED_WITH_STREAMLIT"] = "1"
        subprocess.Popen([sys.executable, "-m", "streamlit", "run", script], env=env)
        sys.exit(0)


_ensure_running_under_streamlit()

st.set_page_config(
    page_title="EV Analytics Dashboard",
    page_icon="🔋",
    layout="wide"
)

st.title("🔋 EV Analytics Dashboard")

BACKEND_URL = os.environ.get("BACKEND_URL", "http://localhost:8000")
PAGE_SIZE = 10


def _get(path: str, **params):
    r = requests.get(f"{BACKEND_URL}{path}", params=params, timeout=30)
    r.raise_for_status()
    return r.json()


def _render_bar(spec):
    fig = go.Figure(go.Bar(x=spec['labels'], y=spec['values'], name=spec['label'], marker_color='rgba(59, 130, 246, 0.6)'))
    fig.update_layout(xaxis_title='Company', yaxis_title=spec['label'])
    st.plotly_chart(fig, use_container_width=True)


def _render_line(spec):
    fig = go.Figure(go.Scatter(x=spec['labels'], y=spec['values'], name=spec['label'], mode='lines+markers', line=dict(color='rgba(167, 139, 250, 1)')))
    fig.update_layout(xaxis_title='Model Year', yaxis_title=spec['label'], xaxis_type='category')
    st.plotly_chart(fig, use_container_width=True)


if "page" not in st.session_state:
    st.session_state.page = 0

tabs = st.tabs(["Dashboard", "Summarize a CSV"])

with tabs[0]:
    try:
        status = _get("/status")
    except requests.exceptions.RequestException as err:
        st.error(f"Backend unreachable: {err}")
        st.stop()

    if status['status'] == 'loading':
        st.info("Loading dataset...")
        if st.button("Refresh"):
            st.rerun()
        st.stop()
    if status['status'] == 'failed':
        st.error(f"Dataset failed to load: {status.get('error')}")
        if st.button("Retry load"):
            requests.post(f"{BACKEND_URL}/reload", timeout=30)
            st.rerun()
        st.stop()

    summary = _get("/summary")
    charts = _get("/charts")

    st.write(f"Total EVs: {summary['total_records']} (Full Data)")

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Average Range", f"{summary['avg_range']} miles (Sampled)")
    with col2:
        st.metric("Top Company", charts['top_make'])

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Top 5 Companies")
        _render_bar(charts['bar'])
    with col2:
        st.subheader("EVs by Year")
        _render_line(charts['line'])

    st.subheader("Data Table")
    pages = max(status['page_count'], 1)
    st.session_state.page = min(st.session_state.page, pages - 1)

    prev_col, jump_col, next_col = st.columns([1, 2, 1])
    with prev_col:
        if st.button("Previous", disabled=st.session_state.page == 0):
            st.session_state.page -= 1
    with next_col:
        if st.button("Next", disabled=st.session_state.page >= pages - 1):
            st.session_state.page += 1
    with jump_col:
        jump = st.number_input("Page", min_value=1, max_value=pages, value=st.session_state.page + 1, step=1)
        st.session_state.page = int(jump) - 1

    records = _get("/records", page=st.session_state.page, page_size=PAGE_SIZE)
    table = pd.DataFrame(records['rows'], columns=['Make', 'Model', 'Model Year', 'Electric Range'])
    table.columns = ['Company', 'Model', 'Year', 'Range']
    st.dataframe(table, use_container_width=True, hide_index=True)
    st.caption(f"Page {records['page'] + 1} of {records['page_count']}")

with tabs[1]:
    uploaded_file = st.file_uploader("Upload an EV population CSV", type="csv")
    if uploaded_file is not None:
        with st.spinner("Summarizing..."):
            try:
                files = {"file": (uploaded_file.name, uploaded_file.getvalue(), "text/csv")}
                r = requests.post(f"{BACKEND_URL}/summarize", files=files, timeout=120)
                r.raise_for_status()
                result = r.json()
            except requests.exceptions.RequestException as err:
                st.error(f"Request error: {err}")
                st.stop()

        col1, col2, col3 = st.columns(3)
        col1.metric("Valid records", result['total_records'])
        col2.metric("EVs with range (sample)", result['total_evs'])
        col3.metric("Average Range", f"{result['avg_range']} miles")
        st.dataframe(pd.DataFrame(result['top_makes'], columns=['Company', 'Count']), hide_index=True)

# Sidebar info
with st.sidebar:
    st.header("ℹ️ About")
    st.markdown("""
    **EVInsight** summarises the Electric Vehicle Population dataset.

    - Rows missing a vehicle type or model year, or with a non-numeric range, are dropped
    - Averages, top companies and the yearly trend use the first 5,000 valid rows
    - The table pages through every valid row
    """)
