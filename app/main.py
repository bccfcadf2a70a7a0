"""
Streamlit Frontend for the Finance Tracker

One dashboard page: summary cards, a filter bar, the transaction list and
a create/edit form.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every change is followed by a full refresh of list and totals
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The page holds no business state of its own. Everything lives in the
DashboardViewModel; the page renders it and forwards user actions.
"""

import asyncio
from typing import Optional

import streamlit as st

from fintrack.config import get_settings, validate_all_settings
from fintrack.models import (
    FilterState,
    NotificationSeverity,
    Transaction,
    TransactionFormData,
    TransactionType,
)
from fintrack.orchestrator import (
    AppComponents,
    DashboardViewModel,
    TransactionCommandHandler,
    create_app_components,
)
from fintrack.presentation import (
    build_summary_cards,
    build_transaction_row,
    resolve_icon,
)
from fintrack.services.auth import AuthenticationError


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .amount-positive {
        color: #28a745;
        font-weight: bold;
        text-align: right;
    }
    .amount-negative {
        color: #dc3545;
        font-weight: bold;
        text-align: right;
    }
    .filter-badge {
        padding: 2px 10px;
        background-color: #cce5ff;
        border-radius: 10px;
        color: #004085;
        font-size: 0.8em;
    }
</style>
""", unsafe_allow_html=True)


TOAST_ICONS = {
    NotificationSeverity.INFO: "ℹ️",
    NotificationSeverity.SUCCESS: "✅",
    NotificationSeverity.ERROR: "❌",
}

FILTER_KEYS = ("filter_date_from", "filter_date_to", "filter_type", "filter_category")


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> AppComponents:
    """Get or create this browser session's components."""
    if "components" not in st.session_state:
        try:
            st.session_state.components = create_app_components(use_storage=True)
        except Exception as e:
            st.error(f"Failed to initialize: {e}")
            st.session_state.components = create_app_components(use_storage=False)
    return st.session_state.components


def type_label(value: Optional[TransactionType]) -> str:
    if value is None:
        return "All types"
    return "Income" if value == TransactionType.INCOME else "Expense"


def main():
    """Main application entry point."""
    components = get_components()
    view_model = components.view_model

    if view_model.user is None:
        render_sign_in(components)
    else:
        render_sidebar(components)
        render_dashboard(view_model, components.commands)

    show_notifications(components)


def show_notifications(components: AppComponents):
    for notification in components.notifications.drain():
        st.toast(
            f"**{notification.title}**  \n{notification.message}",
            icon=TOAST_ICONS[notification.severity],
        )


def render_sign_in(components: AppComponents):
    """Render the sign-in form."""
    st.title("💰 Finance Tracker")
    st.markdown("Sign in to see your transactions.")

    with st.form("sign_in"):
        email = st.text_input("Email *")
        display_name = st.text_input("Name (optional)")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        try:
            components.auth.sign_in(email, display_name or None)
        except AuthenticationError as e:
            st.error(str(e))
            return

        with st.spinner("Loading your transactions..."):
            run_async(
                components.view_model.start_session(
                    seed_categories=get_settings().app.seed_default_categories
                )
            )
        st.rerun()


def render_sidebar(components: AppComponents):
    """Greeting, sign out and connection status."""
    user = components.view_model.user

    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown(f"Hello, **{user.greeting_name}**")
    if st.sidebar.button("Sign out"):
        run_async(components.view_model.sign_out())
        for key in FILTER_KEYS:
            st.session_state.pop(key, None)
        st.session_state.pop("form_data", None)
        st.rerun()

    st.sidebar.markdown("---")
    with st.sidebar.expander("⚙️ Connection Status"):
        status = validate_all_settings()
        backend = get_settings().app.storage_backend
        st.markdown(f"**Storage backend:** {backend}")
        if status.get("google_sheets", False):
            st.success("✅ Google Sheets - Configured")
        else:
            error = status.get("google_sheets_error", "Not configured")
            st.info(f"Google Sheets - {error}")


def render_dashboard(view_model: DashboardViewModel, commands: TransactionCommandHandler):
    """Render the dashboard page."""
    header_col, action_col = st.columns([4, 1])
    with header_col:
        st.title("Dashboard")
    with action_col:
        if st.button("➕ New transaction", type="primary"):
            st.session_state.form_data = view_model.open_form()
            st.rerun()

    render_summary_cards(view_model)
    st.markdown("---")

    if view_model.form_open:
        render_transaction_form(view_model, commands)
        st.markdown("---")

    render_filter_bar(view_model)
    render_transaction_list(view_model, commands)


def render_summary_cards(view_model: DashboardViewModel):
    summary = view_model.summary
    columns = st.columns(4)
    for column, card in zip(columns, build_summary_cards(summary)):
        with column:
            st.metric(label=f"{card.icon} {card.title}", value=card.value)
            st.caption(card.caption)

    if summary.malformed_transaction_ids:
        count = len(summary.malformed_transaction_ids)
        st.warning(
            f"⚠️ {count} transaction(s) have an unreadable amount and are "
            "not included in the totals."
        )


def render_filter_bar(view_model: DashboardViewModel):
    """Date range, type and category filters. Any change triggers a re-fetch."""
    categories = run_async(view_model.load_categories())
    names = {c.id: f"{resolve_icon(c.icon)} {c.name}" for c in categories}

    title_col, clear_col = st.columns([4, 1])
    with title_col:
        badge = ' <span class="filter-badge">Active</span>' if view_model.filters.is_active else ""
        st.markdown(f"### Filters{badge}", unsafe_allow_html=True)
    with clear_col:
        if st.button("Clear filters", disabled=not view_model.filters.is_active):
            for key in FILTER_KEYS:
                st.session_state.pop(key, None)
            run_async(view_model.clear_filters())
            st.rerun()

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        date_from = st.date_input("From", value=None, key="filter_date_from")
    with col2:
        date_to = st.date_input("To", value=None, key="filter_date_to")
    with col3:
        type_filter = st.selectbox(
            "Type",
            options=[None, TransactionType.INCOME, TransactionType.EXPENSE],
            format_func=type_label,
            key="filter_type",
        )
    with col4:
        category_filter = st.selectbox(
            "Category",
            options=[None] + list(names),
            format_func=lambda cid: "All categories" if cid is None else names.get(cid, cid),
            key="filter_category",
        )

    filters = FilterState(
        date_from=date_from,
        date_to=date_to,
        type=type_filter,
        category_id=category_filter,
    )
    if filters != view_model.filters:
        if filters.has_inverted_range:
            st.info("The start date is after the end date, so no transactions match.")
        with st.spinner("Loading..."):
            run_async(view_model.apply_filters(filters))


def render_transaction_list(view_model: DashboardViewModel, commands: TransactionCommandHandler):
    st.markdown("### Transactions")

    transactions = view_model.transactions
    if not transactions:
        if view_model.filters.is_active:
            st.info("No transactions match the current filters.")
        else:
            st.info("📋 No transactions yet. Use 'New transaction' to add your first one.")
        return

    for transaction in transactions:
        render_transaction_row(transaction, view_model, commands)


def render_transaction_row(
    transaction: Transaction,
    view_model: DashboardViewModel,
    commands: TransactionCommandHandler,
):
    row = build_transaction_row(transaction)

    info_col, amount_col, edit_col, delete_col = st.columns([5, 2, 1, 1])
    with info_col:
        st.markdown(f"{row.icon} **{row.title}**  \n{row.category_name} · {row.date_text}")
    with amount_col:
        css = "amount-positive" if row.tone == "positive" else "amount-negative"
        marker = " ⚠️" if row.is_malformed else ""
        st.markdown(f'<div class="{css}">{row.amount_text}{marker}</div>', unsafe_allow_html=True)
    with edit_col:
        if st.button("✏️", key=f"edit_{row.id}", help="Edit"):
            st.session_state.form_data = view_model.open_form(transaction)
            st.rerun()
    with delete_col:
        if st.button("🗑️", key=f"delete_{row.id}", help="Delete"):
            with st.spinner("Deleting..."):
                run_async(commands.delete(row.id))
            st.rerun()


def render_transaction_form(view_model: DashboardViewModel, commands: TransactionCommandHandler):
    """Create/edit form. Only categories of the selected type are offered."""
    form: TransactionFormData = st.session_state.get("form_data") or view_model.open_form()
    st.subheader("✏️ Edit transaction" if view_model.editing else "➕ New transaction")

    types = [TransactionType.EXPENSE, TransactionType.INCOME]
    chosen_type = st.radio(
        "Type",
        options=types,
        index=types.index(form.type),
        format_func=type_label,
        horizontal=True,
    )
    if chosen_type != form.type:
        form = form.with_type(chosen_type)
        st.session_state.form_data = form
        st.rerun()

    categories = run_async(view_model.load_categories(type=form.type))
    names = {c.id: f"{resolve_icon(c.icon)} {c.name}" for c in categories}
    category_ids = list(names)

    with st.form("transaction_form"):
        col1, col2 = st.columns(2)
        with col1:
            amount_text = st.text_input("Amount *", value=form.amount_text, placeholder="0.00")
            transaction_date = st.date_input("Date *", value=form.transaction_date)
        with col2:
            category_id = st.selectbox(
                "Category *",
                options=category_ids,
                index=category_ids.index(form.category_id) if form.category_id in names else None,
                format_func=lambda cid: names.get(cid, cid),
                placeholder="Select a category",
            )
            description = st.text_input("Description", value=form.description)

        save_col, cancel_col = st.columns(2)
        with save_col:
            submitted = st.form_submit_button("Save", type="primary")
        with cancel_col:
            cancelled = st.form_submit_button("Cancel")

    if cancelled:
        view_model.close_form()
        st.session_state.pop("form_data", None)
        st.rerun()

    if submitted:
        form = form.model_copy(update={
            "amount_text": amount_text,
            "description": description,
            "transaction_date": transaction_date,
            "category_id": category_id or "",
        })
        st.session_state.form_data = form

        with st.spinner("Saving..."):
            outcome = run_async(commands.submit(form))

        if outcome.success:
            st.session_state.pop("form_data", None)
            st.rerun()
        elif outcome.validation is not None:
            for issue in outcome.validation.errors:
                st.error(issue.message)


if __name__ == "__main__":
    main()
