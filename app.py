import atexit
import math
import time
from datetime import datetime, timezone

import streamlit as st
from pydantic import ValidationError

from triage.config import SETTINGS
from triage.dispatch import submit_sos
from triage.lexicons import CATEGORIES
from triage.rescuer_auth import RescuerAuth
from triage.rumour_verification import REAL, verify_rumour
from triage.sos_store import SOSStore
from triage.validators import RescuerLogin, RumourForm, SOSForm, first_error_messages

st.set_page_config(page_title="SOS Triage & Dispatch", layout="wide")

TAG_ICON = {"Critical": "🔴", "High": "🟠", "Medium": "🟡", "Low": "🟢", "Minimal": "🔵"}


# ----------------- Store -----------------
@st.cache_resource
def get_store():
    store = SOSStore()
    store.initialize_sample_news()
    atexit.register(store.close)
    return store


store = get_store()
auth = RescuerAuth(st.session_state)


# ----------------- Helpers -----------------
def show_errors(exc):
    for field, msg in first_error_messages(exc).items():
        st.error(f"{field}: {msg}")


def render_request(req, rescuer_id=None):
    icon = TAG_ICON.get(req.priority.tag, "")
    title = f"{icon} {req.sos_id} | {req.category} | {req.priority.tag} ({req.priority.score})"
    with st.expander(title, expanded=req.status == "pending"):
        st.markdown(f"**{req.name}**, age {req.age} | 📞 {req.phone} | status: `{req.status}`")
        st.write(req.description)
        if req.lat is not None and req.lng is not None:
            st.caption(f"📍 {req.lat:.4f}, {req.lng:.4f} (LA: {req.location_accuracy:.2f})")
        else:
            st.caption(f"📍 location not shared (LA: {req.location_accuracy:.2f})")
        if req.priority.human_review_required:
            st.warning("Human review required: critical request with poor location accuracy.")
        st.code(req.reason_explanation, language=None)
        cols = st.columns(5)
        for col, (label, value) in zip(cols, req.severity.as_dict().items()):
            col.metric(label, value)
        if req.eta_seconds:
            st.info(f"Accepted by {req.rescuer_id} | ETA: {math.ceil(req.eta_seconds / 60)} min")

        if rescuer_id is None:
            return
        if req.status == "pending" and st.button("Accept", key=f"accept_{req.sos_id}"):
            result = store.accept_request(req.sos_id, rescuer_id)
            if result.ok:
                st.success(f"Accepted! ETA: {math.ceil(result.eta_seconds / 60)} minutes")
            else:
                st.error("Request is no longer pending.")
        if req.status != "resolved" and st.button("Resolve", key=f"resolve_{req.sos_id}"):
            if store.resolve_request(req.sos_id):
                st.success(f"{req.sos_id} resolved")
            else:
                st.error("Request not found.")


# ----------------- Streamlit UI -----------------
menu = ["Home", "Send SOS", "Verify Rumour", "Rescuer"]
choice = st.sidebar.selectbox("Navigation", menu)

# --------- Home ---------
if choice == "Home":
    st.markdown("<h1 style='text-align:center;color:#FFFDD0;'>SOS Triage & Dispatch</h1>", unsafe_allow_html=True)
    st.markdown(
        "<p style='text-align:center;'>Describe your emergency, we rank it, rescuers respond to the most urgent first.</p>",
        unsafe_allow_html=True,
    )
    st.subheader("Live News")
    for item in store.get_news_items():
        st.markdown(f"**{item.title}**  \n{item.snippet}  \n_{item.source} | {item.timestamp}_")

# --------- Send SOS ---------
elif choice == "Send SOS":
    st.subheader("Send an SOS")
    with st.form("sos_form"):
        name = st.text_input("Name")
        age = st.text_input("Age")
        phone = st.text_input("Phone (10 digits)")
        description = st.text_area("Describe your emergency", placeholder="Provide detailed information about your emergency")
        share_location = st.checkbox("Share my location")
        lat = st.number_input("Latitude", -90.0, 90.0, 0.0, format="%.6f")
        lng = st.number_input("Longitude", -180.0, 180.0, 0.0, format="%.6f")
        accuracy = st.number_input("Location accuracy (metres)", 0.0, 100000.0, 50.0)
        submit = st.form_submit_button("Send SOS")
    if submit:
        try:
            form = SOSForm(
                name=name,
                age=age,
                phone=phone,
                description=description,
                lat=lat if share_location else None,
                lng=lng if share_location else None,
                accuracy=accuracy if share_location else None,
            )
        except ValidationError as exc:
            show_errors(exc)
        else:
            consent = datetime.now(timezone.utc).isoformat() if share_location else None
            req = submit_sos(store, form, consent_timestamp=consent)
            st.success(f"SOS sent! Your request ({req.sos_id}) has {req.priority.tag} priority.")
            st.code(req.reason_explanation, language=None)

# --------- Verify Rumour ---------
elif choice == "Verify Rumour":
    st.subheader("Verify a Rumour")
    with st.form("rumour_form"):
        rumour_text = st.text_area("What did you hear?")
        source = st.text_input("Where did you hear it? (optional)")
        check = st.form_submit_button("Verify")
    if check:
        try:
            form = RumourForm(rumour_text=rumour_text, source=source or None)
        except ValidationError as exc:
            show_errors(exc)
        else:
            with st.spinner("Checking sources..."):
                time.sleep(SETTINGS.rumour_delay_seconds)
                result = verify_rumour(form.rumour_text, form.source)
            verdict = st.success if result.verdict == REAL else st.error
            verdict(f"Verdict: {result.verdict.upper()} (confidence {result.confidence:.0%})")
            st.write(result.reason)
            for ev in result.evidence:
                st.markdown(f"- **{ev.title}** ({ev.source}, {ev.type}): {ev.snippet}")

# --------- Rescuer ---------
elif choice == "Rescuer":
    session = auth.current_session()

    # Step 1: not logged in -> ask for credentials
    if session is None:
        st.subheader("Rescuer Login")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.button("Login"):
            try:
                creds = RescuerLogin(email=email, password=password)
            except ValidationError as exc:
                show_errors(exc)
            else:
                result = auth.login(creds.email, creds.password)
                if result.ok:
                    st.success(f"Welcome, {result.session.name}!")
                    st.rerun()
                else:
                    st.error(result.error)
        st.stop()

    # Step 2: logged in -> dashboard
    st.subheader(f"Rescuer Dashboard | {session.name}")
    if st.sidebar.button("Logout"):
        auth.logout()
        st.rerun()

    category = st.radio("Category", ["All", *CATEGORIES], horizontal=True)
    selected = None if category == "All" else category
    pending = store.get_pending_requests(selected)
    resolved = store.get_resolved_requests()

    c1, c2, c3 = st.columns(3)
    c1.metric("Pending", len(pending))
    c2.metric("Resolved", len(resolved))
    c3.metric("Total", store.count_by_status(selected)["total"])

    b1, b2 = st.columns(2)
    if b1.button("Reset"):
        store.reset()
        st.rerun()
    if b2.button("Clear All"):
        store.clear_all()
        st.rerun()

    query = st.text_input("Search by name, description or phone")
    pending = store.search(pending, query)

    st.markdown("### Pending Requests (sorted by priority)")
    if not pending:
        st.info("No pending requests.")
    st.dataframe(store.to_frame(pending))
    for req in pending:
        render_request(req, session.rescuer_id)

    st.markdown("### In Progress")
    for req in store.get_requests(selected):
        if req.status == "accepted":
            render_request(req, session.rescuer_id)

    st.markdown("### Resolved Requests")
    if not resolved:
        st.info("No resolved requests yet.")
    for req in resolved:
        render_request(req)
