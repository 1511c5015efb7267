import streamlit as st
from doclens.api.client import DocumentAPI
from doclens.controller import AppController
from doclens.state.store import SessionStore, View
from doclens.ui.components import sidebar, dashboard, analyzing_view, document_view
from doclens.utils.config import AppConfig
from doclens.utils.logger import configure_logging

config = AppConfig.from_env()
configure_logging(config.log_level)

st.set_page_config(page_title="Legal Document Analysis", layout="wide", page_icon="⚖️")

# One store/controller per browser session
if "controller" not in st.session_state:
    store = SessionStore()
    st.session_state.controller = AppController(store, DocumentAPI(config), config)
controller: AppController = st.session_state.controller
controller.start_health_monitor()

state = controller.store.state
sidebar(state, config)
if st.sidebar.button("♻️ Reset session", use_container_width=True):
    controller.reset()
    st.session_state.pop("report_file", None)
    st.rerun()

if state.active_view == View.ANALYZING:
    analyzing_view(controller)
elif state.active_view == View.DOCUMENT:
    document_view(controller, config.views)
else:
    st.session_state.pop("report_file", None)
    dashboard(controller)

st.markdown("<div style='text-align:center;font-size:.65rem;opacity:.6;padding:1rem 0;'>Not legal advice. For informational purposes only.</div>", unsafe_allow_html=True)
