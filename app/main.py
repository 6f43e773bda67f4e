"""
Streamlit Frontend for the ATM PIN Manager

This is the menu of the ATM demo rendered as a web page.

DESIGN PRINCIPLES:
1. The generated PIN is shown once, right after creation
2. Every balance action asks for the PIN again
3. A locked account is told so, and nothing else happens
4. The admin view never shows PINs
"""

from decimal import Decimal

import streamlit as st

from atm_pin.models.account import PIN_LENGTHS, ErrorKind
from atm_pin.orchestrator import AccountService, create_app_components


# Page configuration
st.set_page_config(
    page_title="ATM PIN Manager",
    page_icon="🏧",
    layout="centered",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_service() -> AccountService:
    """Get or create the account service (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    service = get_service()

    st.sidebar.title("🏧 ATM PIN Manager")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🆕 Create Account", "🔐 ATM", "📋 Admin", "⚙️ Settings"],
        index=0,
    )

    if page == "🆕 Create Account":
        render_create_page(service)
    elif page == "🔐 ATM":
        render_atm_page(service)
    elif page == "📋 Admin":
        render_admin_page(service)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_create_page(service: AccountService):
    """Render the account creation page."""
    st.title("🆕 Create Account")

    with st.form("create_account"):
        username = st.text_input("Username (no spaces)")
        pin_length = st.radio("PIN length", PIN_LENGTHS, index=0, horizontal=True)
        submitted = st.form_submit_button("Generate PIN", type="primary")

    if not submitted:
        return

    result = service.create_account(username.strip(), pin_length=pin_length)
    if not result.success:
        st.error(result.message)
        return

    st.success(f"{result.message}. Starting balance: Rs {result.account.balance:.2f}")
    st.markdown(f"Generated PIN for **{result.account.username}**:")
    st.code(result.issued_pin)
    st.warning(
        "This would be printed on a receipt in a real system. "
        "It will not be shown again."
    )


def render_atm_page(service: AccountService):
    """Render login and the account actions."""
    st.title("🔐 ATM")

    if "atm_user" not in st.session_state:
        st.session_state.atm_user = None

    if st.session_state.atm_user is None:
        with st.form("login"):
            username = st.text_input("Username")
            pin = st.text_input("PIN", type="password")
            submitted = st.form_submit_button("Login", type="primary")

        if submitted:
            result = service.login(username.strip(), pin)
            if result.success:
                st.session_state.atm_user = result.account.username
                st.rerun()
            show_failure(result.kind, result.message)
        return

    username = st.session_state.atm_user
    st.subheader(f"Menu ({username})")

    action = st.radio(
        "Choose:",
        ["Check balance", "Withdraw", "Change PIN"],
        horizontal=True,
    )

    with st.form(f"action_{action}"):
        pin = st.text_input("Enter PIN", type="password")
        amount = None
        new_pin = None
        if action == "Withdraw":
            amount = st.number_input("Amount to withdraw", min_value=0.0, step=100.0)
        elif action == "Change PIN":
            new_pin = st.text_input("New PIN", type="password")
        submitted = st.form_submit_button("Submit", type="primary")

    if submitted:
        if action == "Check balance":
            result = service.check_balance(username, pin)
        elif action == "Withdraw":
            result = service.withdraw(username, pin, Decimal(str(amount)))
        else:
            result = service.change_pin(username, pin, new_pin)

        if result.success:
            st.success(result.message)
        else:
            show_failure(result.kind, result.message)
            if result.kind == ErrorKind.ACCOUNT_LOCKED or (
                result.account is not None and result.account.locked
            ):
                st.session_state.atm_user = None

    if st.button("Logout"):
        st.session_state.atm_user = None
        st.rerun()


def show_failure(kind, message: str):
    """Show a failed action in the right tone."""
    if kind == ErrorKind.ACCOUNT_LOCKED:
        st.error("Account locked. Contact admin.")
    elif kind in (ErrorKind.WRONG_PIN, ErrorKind.USER_NOT_FOUND, ErrorKind.STORAGE_ERROR):
        st.error(message)
    else:
        st.warning(message)


def render_admin_page(service: AccountService):
    """Render the admin listing. PINs are never part of it."""
    st.title("📋 Admin: Users")

    accounts = service.list_accounts()
    if not accounts:
        st.info("(no accounts yet)")
    else:
        st.table([
            {
                "Username": account.username,
                "Balance": f"Rs {account.balance:.2f}",
                "Locked": "Yes" if account.locked else "No",
            }
            for account in accounts
        ])

    st.markdown("---")
    st.subheader("Recent activity")
    events = service.recent_activity(limit=50)
    if not events:
        st.info("No activity recorded in this session.")
        return
    st.table([
        {
            "Time": event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            "User": event.username or "",
            "Event": event.description,
        }
        for event in events
    ])


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    from atm_pin.config import get_settings, validate_all_settings

    status = validate_all_settings()
    for name, key in [("PIN generation", "pin"), ("Account store", "store"), ("Application", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    if status.get("store", False):
        st.markdown(f"Account file: `{get_settings().store.path}`")

    st.markdown("---")
    st.markdown(
        "Configure the application through environment variables or a `.env` "
        "file (`PIN_*`, `STORE_*`, `STARTING_BALANCE`, ...)."
    )


if __name__ == "__main__":
    main()
