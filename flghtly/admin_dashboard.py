"""
Streamlit admin dashboard for claims and eligibility checks.

    streamlit run flghtly/admin_dashboard.py
"""

import json

import streamlit as st

from flghtly.admin_auth import verify_admin_password
from flghtly.airline_config import SUBMISSION_METHODS
from flghtly.claim_filing import (
    CLAIM_STATUSES,
    generate_airline_submission,
    get_claim_filing_stats,
    mark_claim_as_filed,
    status_index,
    update_claim_status,
    validate_claim_for_filing,
)
from flghtly.claim_store import get_claim_store

st.set_page_config(page_title="Flghtly Admin", page_icon="🔒", layout="wide")

# ============================================================
# ADMIN PASSWORD GATE
# ============================================================
if 'admin_authenticated' not in st.session_state:
    st.session_state.admin_authenticated = False

if not st.session_state.admin_authenticated:
    st.title("🔒 Flghtly Admin")
    st.write("Authorized access only.")

    with st.form("admin_login"):
        password = st.text_input("Admin password:", type="password")
        submitted = st.form_submit_button("Login", type="primary")
        if submitted:
            if verify_admin_password(password):
                st.session_state.admin_authenticated = True
                st.rerun()
            else:
                st.error("Incorrect admin password.")
    st.stop()

# ============================================================
# ADMIN DASHBOARD
# ============================================================
st.title("📊 Flghtly Admin")

@st.cache_resource
def get_store():
    return get_claim_store()

store = get_store()

# ============================================================
# CLAIMS OVERVIEW
# ============================================================
st.header("📋 Claims Overview")

stats = get_claim_filing_stats(store=store)
col1, col2, col3, col4 = st.columns(4)
with col1:
    st.metric("Total Claims", stats['total'])
with col2:
    st.metric("Ready to File", stats['ready_to_file'])
with col3:
    st.metric("Overdue", stats['overdue'])
with col4:
    st.metric("Needing Follow-up", stats['needing_follow_up'])

active = {status: count for status, count in stats['by_status'].items() if count}
if active:
    st.subheader("Status Breakdown")
    for status, count in active.items():
        pct = count / stats['total'] * 100 if stats['total'] else 0
        st.progress(pct / 100, text=f"{status}: {count} ({pct:.0f}%)")
else:
    st.caption("No claims submitted yet.")

st.write("---")

# ============================================================
# ELIGIBILITY CHECKS
# ============================================================
st.header("✈️ Eligibility Checks")

summary = store.eligibility_summary()
col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Checks", summary['total'])
with col2:
    st.metric("Eligible", summary['eligible'])
with col3:
    st.metric("Eligible Rate", f"{summary['eligible_rate']}%" if summary['total'] else "N/A")

if summary['by_regulation']:
    st.subheader("By Regulation")
    for regulation, count in summary['by_regulation'].items():
        st.markdown(f"• **{regulation or 'Unknown'}**: {count}")

recent = store.recent_eligibility_checks(limit=20)
if recent:
    st.subheader("Recent Checks")
    for check in recent:
        icon = "🟢" if check['eligible'] else "⚪"
        st.caption(f"{(check['created_at'] or '')[:16]} | {icon} {check['flight_number']} "
                   f"{check['departure_airport']}-{check['arrival_airport']} | "
                   f"{check['disruption_type']} | {check['amount']} ({check['regulation']})")

st.write("---")

# ============================================================
# CLAIM MANAGEMENT
# ============================================================
st.header("🗂️ Claims")

status_filter = st.selectbox("Filter by status:", ["all"] + CLAIM_STATUSES)
claims = store.get_all_claims(limit=200) if status_filter == "all" else store.get_claims_by_status(status_filter)

if not claims:
    st.caption("No claims match this filter.")

for claim in claims:
    label = (f"{claim['claim_id']} · {claim['status']} · {claim['flight_number']} "
             f"{claim['departure_airport']}-{claim['arrival_airport']} · {claim['estimated_compensation'] or '-'}")
    with st.expander(label):
        st.write(f"**Passenger:** {claim['first_name']} {claim['last_name']} ({claim['email']})")
        st.write(f"**Airline:** {claim['airline']}  ·  **Date:** {claim['departure_date']}")
        st.write(f"**Disruption:** {claim['disruption_type']}  ·  **Delay:** {claim['delay_duration']}")
        if claim['internal_notes']:
            st.text(claim['internal_notes'])

        validation = validate_claim_for_filing(claim['claim_id'], store=store)
        if validation['is_valid']:
            st.success("Ready for filing")
        else:
            st.warning("; ".join(validation['errors']))
        for warning in validation['warnings']:
            st.caption(f"⚠️ {warning}")

        with st.form(f"status_{claim['claim_id']}"):
            new_status = st.selectbox("Status", CLAIM_STATUSES, index=status_index(claim['status']))
            notes = st.text_input("Notes")
            if st.form_submit_button("Update"):
                result = update_claim_status(claim['claim_id'], new_status, notes=notes or None, store=store)
                if result['success']:
                    st.rerun()
                else:
                    st.error(result['message'])

        if validation['is_valid'] and claim['status'] in ("submitted", "validated"):
            if st.button("Generate airline submission", key=f"generate_{claim['claim_id']}"):
                result = generate_airline_submission(claim['claim_id'], store=store)
                if result['success']:
                    st.rerun()
                else:
                    st.error(result['message'])

        if claim['generated_submission']:
            submission = json.loads(claim['generated_submission'])
            st.write(f"**Submission ({submission['type']}):** {submission['subject']}")
            st.text(submission['body'])

        if claim['status'] in ("documents_prepared", "ready_to_file"):
            with st.form(f"file_{claim['claim_id']}"):
                reference = st.text_input("Airline reference")
                filed_by = st.text_input("Filed by")
                method = st.selectbox("Filing method", SUBMISSION_METHODS)
                if st.form_submit_button("Mark as filed"):
                    result = mark_claim_as_filed(claim['claim_id'], reference, filed_by, method, store=store)
                    if result['success']:
                        st.rerun()
                    else:
                        st.error(result['message'])

st.write("---")

# ============================================================
# EXPORT
# ============================================================
st.header("📤 Export Data")

csv_data = store.export_claims_csv()
if csv_data and len(csv_data.split("\n")) > 1:
    st.download_button(
        label="Download claims (CSV)",
        data=csv_data,
        file_name="flghtly_claims_export.csv",
        mime="text/csv"
    )
    st.caption(f"{len(csv_data.split(chr(10))) - 1} claims in export")
else:
    st.caption("No data to export.")

st.write("---")

if st.button("🚪 Admin Logout"):
    st.session_state.admin_authenticated = False
    st.rerun()
