import queue
import threading
import time

import pandas as pd
import plotly.express as px
import streamlit as st

# --- 1. STREAMLIT PAGE CONFIG (MUST BE THE FIRST ST COMMAND) ---
st.set_page_config(layout="wide", initial_sidebar_state="expanded", page_title="SOFI Digital Banking")
st.markdown("""
<style>
.stAlert > div { border-left: 5px solid #FF4B4B; }
</style>
""", unsafe_allow_html=True)


# --- 2. PROJECT MODULE IMPORTS ---
try:
    from accounts import AuthError, UserDirectory
    from ai_fraud_module import AssistantConfig, SmartAssistant
    from fraud_score_service import (
        WITHDRAWAL_DESTINATIONS,
        InsufficientFunds,
        TransactionLedger,
        TransactionStatus,
        VerificationFailed,
        withdrawal_token,
    )
    from reference_data import KNOWN_PAYEES_PATH, load_reference_data
    from rules_engine import InvalidInput, NumpyRandomSource, detect_suspicious_activity
    from simulator import build_initial_transactions, run_simulator
except ImportError as e:
    st.error(f"FATAL SETUP ERROR: Cannot load project module. Error: {e}")
    st.stop()


# --- Session State Initialization ---
if 'directory' not in st.session_state:
    st.session_state.directory = UserDirectory()
if 'refs' not in st.session_state:
    st.session_state.refs = load_reference_data(KNOWN_PAYEES_PATH)
if 'assistant' not in st.session_state:
    st.session_state.assistant = SmartAssistant(AssistantConfig.from_env())
if 'ledger' not in st.session_state:
    st.session_state.ledger = None
if 'auth_view' not in st.session_state:
    st.session_state.auth_view = 'login'
if 'notification' not in st.session_state:
    st.session_state.notification = None
if 'review_txn_id' not in st.session_state:
    st.session_state.review_txn_id = None
if 'security_tips' not in st.session_state:
    st.session_state.security_tips = None
if 'feed_queue' not in st.session_state:
    st.session_state.feed_queue = queue.Queue()
if 'feed_df' not in st.session_state:
    st.session_state.feed_df = pd.DataFrame(columns=['payee', 'amount', 'score', 'is_suspicious', 'location', 'device', 'reasons'])
if 'simulator_stop' not in st.session_state:
    st.session_state.simulator_stop = None


STATUS_COLORS = {
    TransactionStatus.INITIATED.value: 'background-color: #DBEAFE; color: black',
    TransactionStatus.PENDING.value: 'background-color: #FEF3C7; color: black',
    TransactionStatus.COMPLETED.value: 'background-color: #D1FAE5; color: black',
    TransactionStatus.CANCELLED.value: 'background-color: #FEE2E2; color: black',
}


def notify(message, kind='success'):
    st.session_state.notification = (kind, message)


def show_notification():
    if st.session_state.notification:
        kind, message = st.session_state.notification
        (st.success if kind == 'success' else st.error)(message)
        st.session_state.notification = None


# --- Auth Views ---

def render_login():
    st.title("🏦 Welcome Back")
    with st.form("login_form"):
        email = st.text_input("Email", placeholder="alex.j@example.com")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log In")

    if submitted:
        try:
            user = st.session_state.directory.login(email, password)
        except AuthError as e:
            st.error(str(e))
        else:
            st.session_state.ledger = TransactionLedger(
                user,
                st.session_state.refs,
                rng=NumpyRandomSource(),
                transactions=build_initial_transactions(),
            )
            st.rerun()

    if st.button("Don't have an account? Sign up"):
        st.session_state.auth_view = 'signup'
        st.rerun()


def render_signup():
    st.title("📝 Create Your Account")
    account_type = st.radio("Account type", ['personal', 'corporate'], horizontal=True,
                            format_func=lambda t: t.capitalize())
    with st.form("signup_form"):
        name = st.text_input("Business Name" if account_type == 'corporate' else "Full Name")
        email = st.text_input("Email")
        id_number = business_id = None
        if account_type == 'personal':
            id_number = st.text_input("National ID Number")
        else:
            business_id = st.text_input("Business ID", placeholder="e.g., KRA123456")
        password = st.text_input("Password", type="password")
        confirm_password = st.text_input("Confirm Password", type="password")
        submitted = st.form_submit_button("Sign Up")

    if submitted:
        try:
            st.session_state.directory.signup(
                account_type, name, email, password, confirm_password,
                id_number=id_number, business_id=business_id,
            )
        except AuthError as e:
            st.error(str(e))
        else:
            notify("Sign up successful! Please log in.")
            st.session_state.auth_view = 'login'
            st.rerun()

    if st.button("Already have an account? Log in"):
        st.session_state.auth_view = 'login'
        st.rerun()


# --- Suspicious Transaction Review ---

def render_review_panel(ledger):
    txn_id = st.session_state.review_txn_id
    if not txn_id:
        return
    txn = ledger.get_transaction(txn_id)
    if not txn['is_suspicious']:
        st.session_state.review_txn_id = None
        return

    st.error("🚨 **Suspicious Activity Detected.** A transaction requires your approval. "
             "Please review the details below to ensure your account is secure.")
    col1, col2 = st.columns(2)
    col1.markdown(f"**Payee:** {txn['payee']}  \n**Amount:** ${txn['amount']:,.2f}  \n**Date:** {txn['date']}")
    col2.markdown(f"📍 **Location:** {txn['location']}  \n💻 **Device:** {txn['device']}")

    action = st.radio("Was this you?", ['safe', 'fraud'], horizontal=True, index=None, key=f"review_{txn_id}",
                      format_func=lambda a: "This was me" if a == 'safe' else "This wasn't me")
    c1, c2 = st.columns(2)
    if c1.button("Confirm", disabled=action is None, key=f"confirm_{txn_id}"):
        _, message = ledger.resolve_suspicious(txn_id, action)
        notify(message, 'success' if action == 'safe' else 'error')
        st.session_state.review_txn_id = None
        st.rerun()
    if c2.button("Close", key=f"close_{txn_id}"):
        st.session_state.review_txn_id = None
        st.rerun()
    st.markdown("---")


# --- Main Views ---

def render_overview(ledger):
    summary = ledger.summary()
    user = ledger.user

    suspicious = ledger.suspicious_transactions()
    if suspicious:
        st.warning(f"We've detected {len(suspicious)} suspicious transaction(s). Please review them immediately.")
        for txn in suspicious:
            if st.button(f"Review {txn['payee']} (${txn['amount']:,.2f})", key=f"review_btn_{txn['id']}"):
                st.session_state.review_txn_id = txn['id']
                st.rerun()

    c1, c2, c3 = st.columns(3)
    c1.metric("Available Balance", f"${summary['balance']:,.2f}", help=user.account_number)
    c2.metric("Pending Transactions", summary['pending_count'])
    c3.metric("Completed this Month", f"${summary['completed_this_month']:,.2f}")

    st.subheader("🧾 Recent Transactions")
    st.dataframe(ledger.to_frame().head(4)[['payee', 'amount', 'date', 'status']],
                 hide_index=True, use_container_width=True)

    spending = ledger.spending_by_payee()
    if not spending.empty:
        st.subheader("📊 Completed Spending by Payee")
        fig = px.bar(spending, x='payee', y='amount', height=300, color='payee')
        fig.update_layout(margin={"t": 30, "b": 10, "l": 10, "r": 10}, showlegend=False)
        st.plotly_chart(fig, use_container_width=True)


def render_send_payment(ledger):
    st.header("✍️ Send Payment")
    is_business = st.checkbox("This is a payment to a business")
    with st.form("payment_form"):
        payee = st.text_input("Pay to the order of", placeholder="Enter payee's name")
        registration_id = merchant_code = None
        if is_business:
            registration_id = st.text_input("Business Registration No.", placeholder="e.g., REG-12345")
            merchant_code = st.text_input("Till Number", placeholder="e.g., 555111")
        amount = st.number_input("Amount ($)", min_value=0.0, step=0.01, format="%.2f")
        memo = st.text_input("Memo", placeholder="e.g., Monthly rent, Invoice #123")
        submitted = st.form_submit_button("Send Payment")

    if submitted:
        try:
            txn = ledger.submit_payment(
                payee.strip(), amount, memo,
                registration_id=registration_id, merchant_code=merchant_code, is_business=is_business,
            )
        except (InvalidInput, InsufficientFunds, VerificationFailed) as e:
            st.error(str(e))
            return

        if txn['is_suspicious']:
            st.session_state.review_txn_id = txn['id']
        else:
            notify(f"Payment of ${txn['amount']:,.2f} to {txn['payee']} initiated.")
        st.rerun()


def render_withdraw(ledger):
    st.header("🏧 Withdraw Funds")
    options = list(WITHDRAWAL_DESTINATIONS)
    default = options.index('bank') if ledger.user.account_type == 'corporate' else 0
    with st.form("withdraw_form"):
        amount = st.number_input("Amount ($)", min_value=0.0, step=0.01, format="%.2f")
        destination = st.radio("Destination", options, index=default,
                               format_func=lambda d: WITHDRAWAL_DESTINATIONS[d])
        submitted = st.form_submit_button("Withdraw")

    if submitted:
        try:
            with st.spinner("Verifying Transaction..."):
                txn = ledger.submit_withdrawal(amount, destination)
        except (InvalidInput, InsufficientFunds) as e:
            st.error(str(e))
            return

        if txn['is_suspicious']:
            st.session_state.review_txn_id = txn['id']
            st.rerun()

        st.success(f"Withdrawal Successful! ${txn['amount']:,.2f} to {txn['payee']}")
        if destination == 'agent':
            st.info(f"Withdrawal Token: **{withdrawal_token(txn)}**")


def render_history(ledger):
    st.header("📜 Transaction History")

    def color_status(val):
        return STATUS_COLORS.get(val, '')

    c1, c2 = st.columns([1, 2])
    status = c1.selectbox("Status", ['all'] + [s.value for s in TransactionStatus],
                          format_func=lambda s: "All" if s == 'all' else s)
    query = c2.text_input("Search payee, memo or amount")

    df = ledger.history(status=status, query=query)
    if df.empty:
        st.info("No transactions match your filters.")
        return
    df['flag'] = df['is_suspicious'].map(lambda s: '🚨' if s else '')
    display_df = df[['flag', 'id', 'payee', 'amount', 'date', 'memo', 'status']]
    st.dataframe(display_df.style.map(color_status, subset=['status']), hide_index=True, use_container_width=True)


def render_security(ledger):
    st.header("🛡️ Security Center")
    st.subheader("Recent Security Events")
    events = ledger.security_events()
    if not events:
        st.info("No recent security events.")
    for event in events:
        st.warning(f"{event['date']}: {event['description']}")

    st.subheader("🤖 AI Security Tips")
    if st.session_state.security_tips is None:
        with st.spinner("Loading tips..."):
            st.session_state.security_tips = st.session_state.assistant.get_security_tips()
    st.markdown(st.session_state.security_tips)


def render_assistant(ledger):
    st.header("💬 Smart Assistant")
    st.info("Ask about your spending, e.g. 'What did I spend the most on this month?'")
    question = st.text_input("Your question:")
    if question:
        with st.spinner("Analyzing..."):
            answer = st.session_state.assistant.analyze_spending(ledger.transactions, question)
        st.markdown(answer)


def process_feed():
    """Scores queued demo payments and adds them to the live feed."""
    new_rows = []
    rng = NumpyRandomSource()
    for _ in range(10):
        try:
            candidate = st.session_state.feed_queue.get_nowait()
        except queue.Empty:
            break
        verdict = detect_suspicious_activity(candidate, st.session_state.refs, rng)
        new_rows.append({
            'payee': candidate.payee,
            'amount': candidate.amount,
            'score': verdict.score,
            'is_suspicious': verdict.is_suspicious,
            'location': verdict.location or '',
            'device': verdict.device or '',
            'reasons': ", ".join(verdict.reasons) or "Normal transaction pattern",
        })

    if new_rows:
        st.session_state.feed_df = pd.concat(
            [pd.DataFrame(new_rows), st.session_state.feed_df], ignore_index=True
        ).head(500)


def render_live_feed():
    st.header("📡 Live Scoring Feed (Demo Traffic)")
    if st.session_state.simulator_stop is None:
        if st.button("▶️ Start Simulator"):
            stop_event = threading.Event()
            thread = threading.Thread(
                target=run_simulator,
                args=(st.session_state.feed_queue, NumpyRandomSource(), st.session_state.refs, stop_event),
                daemon=True,
            )
            thread.start()
            st.session_state.simulator_stop = stop_event
            st.rerun()
    else:
        if st.button("⏹️ Stop Simulator"):
            st.session_state.simulator_stop.set()
            st.session_state.simulator_stop = None
            st.rerun()

    process_feed()
    feed = st.session_state.feed_df
    if feed.empty:
        st.info("No demo payments scored yet.")
        return
    flagged = int(feed['is_suspicious'].astype(bool).sum())
    st.metric("Flagged", f"{flagged} / {len(feed)}")
    st.dataframe(feed.head(20), hide_index=True, use_container_width=True)


VIEWS = {
    "Dashboard": render_overview,
    "Send Payment": render_send_payment,
    "Withdraw": render_withdraw,
    "History": render_history,
    "Security": render_security,
    "Smart Assistant": render_assistant,
    "Live Feed": lambda ledger: render_live_feed(),
}


# --- UI Layout ---

show_notification()

ledger = st.session_state.ledger
if ledger is None:
    if st.session_state.auth_view == 'login':
        render_login()
    else:
        render_signup()
    st.stop()

# Apply any delayed status changes that are now due
ledger.process_due_transitions()

with st.sidebar:
    st.header(f"👋 {ledger.user.name}")
    st.caption(f"{ledger.user.account_number} · {ledger.user.account_type.capitalize()}")
    view = st.radio("Navigate", list(VIEWS))
    if st.button("Log Out"):
        if st.session_state.simulator_stop is not None:
            st.session_state.simulator_stop.set()
            st.session_state.simulator_stop = None
        st.session_state.ledger = None
        st.session_state.review_txn_id = None
        st.rerun()

st.title("🏦 SOFI Digital Banking")
render_review_panel(ledger)
VIEWS[view](ledger)

# --- Auto-Refresh Rerun ---
if ledger.pending_transitions() or st.session_state.simulator_stop is not None:
    time.sleep(2)
    st.rerun()
