"""
Streamlit Frontend for Payment Splitter

The single page the group uses to track who owes what.

DESIGN PRINCIPLES:
1. Everything on one page: people, expenses, balances, history
2. Explicit confirmation before settling or clearing data
3. Every change is saved immediately
4. Status of the last save/load is always visible

The ledger session lives in st.session_state, so each browser
session owns exactly one ledger.
"""

import streamlit as st

from payment_splitter.config import get_settings
from payment_splitter.ledger import balance_state, expense_rows, format_amount
from payment_splitter.orchestrator import LedgerSession, create_app_components


# Page configuration
st.set_page_config(
    page_title="Payment Splitter",
    page_icon="💸",
    layout="wide",
)

BALANCE_COLORS = {
    "positive": "#dc3545",
    "negative": "#28a745",
    "zero": "#6c757d",
}


def get_session() -> LedgerSession:
    """Get or create this browser session's ledger session."""
    if "ledger_session" not in st.session_state:
        try:
            st.session_state.ledger_session = create_app_components(use_storage=True)
        except Exception as e:
            st.error(f"Failed to initialize storage: {e}")
            st.session_state.ledger_session = create_app_components(use_storage=False)
    return st.session_state.ledger_session


def main():
    """Main application entry point."""
    session = get_session()
    app_settings = get_settings().app
    currency = app_settings.currency_label
    decimals = app_settings.display_decimals

    st.title("💸 Payment Splitter")

    left, right = st.columns([1, 2])

    with left:
        render_add_user(session)
        render_add_expense(session)

    with right:
        render_balances(session, currency, decimals)
        render_history(session, currency, decimals)
        render_data_management(session)


def render_add_user(session: LedgerSession):
    """Add-participant form."""
    st.subheader("Add New User")
    with st.form("add_user", clear_on_submit=True):
        name = st.text_input("Name", placeholder="Enter user name")
        if st.form_submit_button("Add", type="primary"):
            session.add_participant(name)
            st.rerun()


def render_add_expense(session: LedgerSession):
    """Add-expense form with participant selection."""
    st.subheader("Add New Expense")
    participants = session.ledger.participants
    names = {p.id: p.name for p in participants}

    with st.form("add_expense", clear_on_submit=True):
        amount = st.text_input("Amount", placeholder="Amount")
        description = st.text_input("Description", placeholder="Description")
        selected = st.multiselect(
            "Split between",
            options=list(names),
            format_func=lambda pid: names.get(pid, str(pid)),
        )
        if st.form_submit_button("Add", type="primary"):
            session.add_expense(amount, description, selected)
            st.rerun()


def render_balances(session: LedgerSession, currency: str, decimals: int):
    """Balances table with payment and settle actions."""
    st.subheader("User Balances")
    ledger = session.ledger

    if not ledger.participants:
        st.info("Add a user to get started.")
        return

    for participant in ledger.participants:
        name_col, balance_col, pay_col, action_col = st.columns([2, 2, 3, 2])
        state = balance_state(participant.balance)

        name_col.markdown(f"**{participant.name}**")
        balance_col.markdown(
            f"<span style='color:{BALANCE_COLORS[state]}'>"
            f"{format_amount(participant.balance, currency, decimals)}</span>",
            unsafe_allow_html=True,
        )

        if participant.balance > 0:
            with pay_col:
                value = st.text_input(
                    "Payment",
                    key=f"pay_input_{participant.id}",
                    placeholder="Amount",
                    label_visibility="collapsed",
                )
                session.set_payment_input(participant.id, value)
                if st.button("Pay", key=f"pay_{participant.id}"):
                    session.record_payment(participant.id)
                    st.session_state.pop(f"pay_input_{participant.id}", None)
                    st.rerun()

        with action_col:
            confirm_key = f"confirm_settle_{participant.id}"
            if st.session_state.get(confirm_key):
                st.warning(f"Settle {participant.name}?")
                if st.button("Yes, settle", key=f"settle_yes_{participant.id}"):
                    session.settle(participant.id, confirmed=True)
                    st.session_state[confirm_key] = False
                    st.session_state.pop(f"pay_input_{participant.id}", None)
                    st.rerun()
                if st.button("Cancel", key=f"settle_no_{participant.id}"):
                    st.session_state[confirm_key] = False
                    st.rerun()
            elif st.button("Settle", key=f"settle_{participant.id}"):
                st.session_state[confirm_key] = True
                st.rerun()

    if ledger.can_undo:
        if st.button("↩️ Undo last settlement"):
            session.undo_last_settlement()
            st.rerun()


def render_history(session: LedgerSession, currency: str, decimals: int):
    """Expense history table."""
    st.subheader("Expense History")
    rows = expense_rows(session.ledger.expenses, currency, decimals)
    if rows:
        st.dataframe(rows, use_container_width=True, hide_index=True)
    else:
        st.caption("No expenses yet.")


def render_data_management(session: LedgerSession):
    """Save, load and clear buttons with the status message."""
    st.markdown("---")
    save_col, load_col, clear_col, status_col = st.columns([1, 1, 1, 3])

    if save_col.button("Save Data", type="primary"):
        session.save()
        st.rerun()

    if load_col.button("Load Data"):
        session.load()
        st.rerun()

    if st.session_state.get("confirm_clear"):
        st.error("Are you sure you want to clear all data? This cannot be undone.")
        yes_col, no_col = st.columns(2)
        if yes_col.button("Yes, clear everything"):
            session.clear_data(confirmed=True)
            st.session_state.confirm_clear = False
            st.rerun()
        if no_col.button("Cancel"):
            st.session_state.confirm_clear = False
            st.rerun()
    elif clear_col.button("Clear Data"):
        st.session_state.confirm_clear = True
        st.rerun()

    if session.status:
        status_col.caption(session.status)


if __name__ == "__main__":
    main()
