"""
Production Tracking Dashboard — Interactive front end

Run with:  streamlit run app.py
"""

import asyncio

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from production_dashboard.config import CATEGORIES, PROCESSES, ROLES, SITE_NAME, load_settings
from production_dashboard.dashboard import get_available_months, get_monthly_overview
from production_dashboard.dates import current_month_iso, today_iso
from production_dashboard.errors import DashboardError
from production_dashboard.reports import export_csv, report_filename
from production_dashboard.services import (
    add_off_day,
    add_plan,
    add_user,
    change_password,
    delete_user,
    edit_entry,
    find_off_day,
    generate_batch_no,
    has_permission,
    login,
    record_actual,
    remove_entry,
    remove_off_day,
)
from production_dashboard.store import RecordStore

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title=f"{SITE_NAME} Dashboard",
    page_icon="🏭",
    layout="wide",
    initial_sidebar_state="expanded",
)

RAG_COLORS = {
    "green": "#10b981",
    "amber": "#fbbf24",
    "red": "#f43f5e",
    "grey": "#95a5a6",
}


# ---------------------------------------------------------------------------
# Store (one per server process)
# ---------------------------------------------------------------------------
@st.cache_resource
def get_store() -> RecordStore:
    return RecordStore.from_settings()


settings = load_settings()
store = get_store()


def current_user():
    """Signed-in user for this browser session, re-read so role changes apply."""
    user_id = st.session_state.get("user_id")
    if user_id is None:
        return None
    found = next((u for u in store.get_users() if u.id == user_id), None)
    if found is None:
        del st.session_state["user_id"]
    return found


user = current_user()


def run_action(fn, *args, success: str, **kwargs):
    """Call a store operation and report the outcome in the page."""
    try:
        result = fn(*args, **kwargs)
    except DashboardError as e:
        st.error(str(e))
        return None
    st.success(success)
    return result


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(SITE_NAME)
st.sidebar.markdown("Production Tracking Dashboard")
st.sidebar.divider()

category = st.sidebar.selectbox("Category", CATEGORIES)
months = get_available_months(store.get_entries(), category)
this_month = current_month_iso(settings.timezone)
if this_month not in months:
    months = [this_month] + months
month = st.sidebar.selectbox("Month", months)

pages = ["Dashboard", "Activity Log"]
if has_permission(user, ("admin", "manager", "planner", "operator")):
    pages.insert(1, "Input")
if has_permission(user, ("admin", "manager")):
    pages.append("Off-days")
if has_permission(user, ("admin",)):
    pages.append("Users")
page = st.sidebar.radio("Navigate", pages)

st.sidebar.divider()
if user is None:
    with st.sidebar.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        if st.form_submit_button("Sign in"):
            signed_in = run_action(login, store, username, password, persist=False, success="Signed in")
            if signed_in:
                st.session_state["user_id"] = signed_in.id
                st.rerun()
else:
    st.sidebar.caption(f"Signed in as **{user.name}** ({user.role})")
    if st.sidebar.button("Sign out"):
        st.session_state.pop("user_id", None)
        st.session_state.pop("editing", None)
        st.rerun()
    with st.sidebar.expander("Change password"):
        with st.form("change_password"):
            current = st.text_input("Current password", type="password")
            new = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm password", type="password")
            if st.form_submit_button("Update"):
                run_action(change_password, store, user, current, new, confirm,
                           success="Password updated successfully")

if store.adapter.is_enabled():
    if st.sidebar.button("Sync with sheet"):
        result = asyncio.run(store.sync())
        st.sidebar.success("Synced" if result.any else "Sync failed; local data kept")
else:
    st.sidebar.caption("Sheet sync disabled")


# ---------------------------------------------------------------------------
# Helper: KPI card
# ---------------------------------------------------------------------------
def kpi_card(label: str, value: str, rag: str = "grey"):
    color = RAG_COLORS.get(rag, RAG_COLORS["grey"])
    st.markdown(
        f"""
        <div style="border-left: 4px solid {color}; border-radius: 8px;
                    padding: 16px; margin-bottom: 8px; background: {color}11;">
            <div style="font-size: 12px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; margin: 4px 0;">{value}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# ===========================================================================
# PAGE: Dashboard
# ===========================================================================
if page == "Dashboard":
    st.title(f"{category} — {month}")

    overview = get_monthly_overview(store.get_entries(), store.get_off_days(), category, month)
    totals = overview["totals"]

    cols = st.columns(4)
    with cols[0]:
        kpi_card("Monthly Plan (Total)", f"{totals['plan']:,}")
    with cols[1]:
        kpi_card("Monthly Actual (Total)", f"{totals['actual']:,}")
    with cols[2]:
        kpi_card("Variance", f"{totals['variance']:+,}", "green" if totals["variance"] >= 0 else "red")
    with cols[3]:
        kpi_card("Overall Efficiency", f"{totals['efficiency']:.1f}%", totals["rag"])

    st.subheader("Monthly Process Breakdown")
    proc_cols = st.columns(max(len(overview["processes"]), 1))
    for col, proc in zip(proc_cols, overview["processes"]):
        with col:
            kpi_card(proc["process"], f"{proc['actual']:,} / {proc['plan']:,}", proc["rag"])
            st.caption(f"Variance {proc['variance']:+,}")

    chart_df = pd.DataFrame(overview["processes"])
    if (chart_df["plan"] > 0).any() or (chart_df["actual"] > 0).any():
        fig = go.Figure()
        fig.add_trace(go.Bar(x=chart_df["process"], y=chart_df["plan"], name="Plan", marker_color="#3b82f6"))
        fig.add_trace(go.Bar(x=chart_df["process"], y=chart_df["actual"], name="Actual", marker_color="#10b981"))
        fig.update_layout(barmode="group", height=350, plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info(f"No data recorded for {month}.")

    st.download_button(
        "Export Report",
        data=export_csv(store.get_entries(), category),
        file_name=report_filename(category, month),
        mime="text/csv",
    )

    editing = next((e for e in store.get_entries() if e.id == st.session_state.get("editing")), None)
    if editing is not None and has_permission(user, ("admin", "manager")):
        st.subheader(f"Edit Record: {editing.product_name} ({editing.date})")
        with st.form("edit_entry"):
            edit_date = st.date_input("Date", value=pd.Timestamp(editing.date))
            edit_category = st.selectbox(
                "Category", CATEGORIES,
                index=CATEGORIES.index(editing.category) if editing.category in CATEGORIES else 0,
            )
            process_options = PROCESSES if editing.process in PROCESSES else PROCESSES + [editing.process]
            edit_process = st.selectbox("Process", process_options, index=process_options.index(editing.process))
            edit_product = st.text_input("Product Name", value=editing.product_name)
            edit_plan = st.number_input("Plan Quantity", min_value=0, step=1, value=editing.plan_quantity)
            edit_actual = st.number_input("Actual Quantity", min_value=0, step=1, value=editing.actual_quantity)
            edit_manpower = st.number_input("Manpower", min_value=0, step=1, value=editing.manpower or 0)
            edit_batch = st.text_input("Batch Number", value=editing.batch_no or "")
            save, cancel = st.columns(2)
            if save.form_submit_button("Save Changes"):
                updated = run_action(
                    edit_entry, store, user, editing.id,
                    date=edit_date.isoformat(),
                    category=edit_category,
                    process=edit_process,
                    product_name=edit_product,
                    plan_quantity=edit_plan,
                    actual_quantity=edit_actual,
                    manpower=edit_manpower,
                    batch_no=edit_batch,
                    success="Record updated",
                )
                if updated is not None:
                    del st.session_state["editing"]
                    st.rerun()
            if cancel.form_submit_button("Cancel"):
                del st.session_state["editing"]
                st.rerun()

    st.subheader("Daily Production Log")
    if not overview["daily"]:
        st.info("No production logs found for the selected month.")
    for group in overview["daily"]:
        header = f"{group['display_date']} — Total Actual: {group['total_actual']:,}"
        if group["off_day"]:
            header += f"  (OFF: {group['off_day']})"
        with st.expander(header, expanded=False):
            if not group["entries"]:
                st.caption("Non-working day.")
                continue
            rows = [
                {
                    "Process": e.process,
                    "Product": e.product_name,
                    "Plan": e.plan_quantity,
                    "Actual": e.actual_quantity,
                    "Batch No": e.batch_no or "-",
                    "Manpower": e.manpower or 0,
                }
                for e in group["entries"]
            ]
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
            if has_permission(user, ("admin", "manager")):
                for e in group["entries"]:
                    edit_col, delete_col = st.columns(2)
                    if edit_col.button(f"Edit {e.product_name} ({e.process})", key=f"edit-{e.id}"):
                        st.session_state["editing"] = e.id
                        st.rerun()
                    if delete_col.button(f"Delete {e.product_name} ({e.process})", key=f"del-{e.id}"):
                        deleted = remove_entry(store, user, e.id)
                        if deleted is None:
                            st.warning("Entry was already removed")
                        st.rerun()


# ===========================================================================
# PAGE: Input
# ===========================================================================
elif page == "Input":
    st.title("Production Input")
    tab_plan, tab_actual = st.tabs(["Plan", "Actual"])

    with tab_plan:
        with st.form("plan"):
            date = st.date_input("Date", value=pd.Timestamp(today_iso(settings.timezone)))
            plan_category = st.selectbox("Category", CATEGORIES, index=CATEGORIES.index(category))
            process = st.selectbox("Process", PROCESSES)
            product = st.text_input("Product Name")
            quantity = st.number_input("Plan Quantity", min_value=1, step=1)
            if st.form_submit_button("Submit Plan"):
                run_action(add_plan, store, user, date.isoformat(), plan_category, process, product, quantity,
                           success="Production plan saved successfully!")

    with tab_actual:
        date = st.date_input("Date", value=pd.Timestamp(today_iso(settings.timezone)), key="actual-date")
        day = date.isoformat()
        holiday = find_off_day(store, day)
        if holiday is not None:
            st.info(f"PUBLIC HOLIDAY: {holiday.description}")
        plans = [e for e in store.get_entries() if e.date == day]
        if not plans:
            st.caption("No plans found for this date. Ask a planner to input data first.")
        else:
            labels = {f"{e.product_name} · {e.process} · plan {e.plan_quantity}": e.id for e in plans}
            with st.form("actual"):
                choice = st.selectbox("Plan", list(labels))
                actual = st.number_input("Actual Quantity", min_value=0, step=1)
                manpower = st.number_input("Manpower", min_value=0, step=1)
                batch = st.text_input("Batch Number", value=generate_batch_no(day))
                if st.form_submit_button("Update Production Data"):
                    run_action(record_actual, store, user, labels[choice], actual, manpower, batch,
                               success="Actual production recorded successfully!")


# ===========================================================================
# PAGE: Off-days
# ===========================================================================
elif page == "Off-days":
    st.title("Off-days")
    with st.form("off_day"):
        date = st.date_input("Date")
        description = st.text_input("Description")
        if st.form_submit_button("Add Off-day"):
            run_action(add_off_day, store, user, date.isoformat(), description, success="Off-day saved")

    off_days = store.get_off_days()
    st.dataframe(pd.DataFrame([od.to_dict() for od in off_days]), use_container_width=True, hide_index=True)
    if off_days:
        target = st.selectbox("Remove", [od.date for od in off_days])
        if st.button("Remove Off-day"):
            remove_off_day(store, user, target)
            st.rerun()


# ===========================================================================
# PAGE: Users
# ===========================================================================
elif page == "Users":
    st.title("User Management")
    with st.form("new_user"):
        name = st.text_input("Full Name")
        username = st.text_input("Username")
        email = st.text_input("Email Address")
        password = st.text_input("Password")
        role = st.selectbox("Role", ROLES, index=ROLES.index("operator"))
        if st.form_submit_button("Save New User"):
            run_action(add_user, store, user, name, username, email, password, role, success="User created")

    users = store.get_users()
    st.dataframe(
        pd.DataFrame([{"Name": u.name, "Username": u.username, "Email": u.email, "Role": u.role} for u in users]),
        use_container_width=True,
        hide_index=True,
    )
    target = st.selectbox("Delete user", [u.username for u in users])
    if st.button("Delete"):
        chosen = next(u for u in users if u.username == target)
        if run_action(delete_user, store, user, chosen.id, success="User deleted"):
            st.rerun()


# ===========================================================================
# PAGE: Activity Log
# ===========================================================================
elif page == "Activity Log":
    st.title("System Activity Log")
    logs = store.get_logs()
    if not logs:
        st.info("No activity recorded yet.")
    else:
        st.dataframe(
            pd.DataFrame([
                {"When": log.timestamp, "User": log.user_name, "Action": log.action, "Details": log.details}
                for log in logs
            ]),
            use_container_width=True,
            hide_index=True,
        )
