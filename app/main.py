"""
Streamlit Frontend for Smart Budget

The interface people use every day to log spending and check on their
budget.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything extracted is saved
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The UI enforces the human-in-the-loop principle:
- User sees what was extracted from an SMS, email or voice note
- User confirms or edits
- Nothing is saved without explicit "Save" action
"""

import asyncio
import calendar
from datetime import date, timedelta
from decimal import Decimal

import streamlit as st

from smart_budget.audit import create_correlation_id
from smart_budget.config import get_settings, validate_all_settings
from smart_budget.models import (
    AlertLevel,
    Category,
    ChangeFrequency,
    ChangeType,
    GoalPriority,
    ReminderFrequency,
    ReminderType,
    ScenarioChange,
    TimeRange,
    TransactionSource,
    TransactionType,
)
from smart_budget.analytics import available_months, available_years, daily_series
from smart_budget.orchestrator import AppComponents, create_app_components
from smart_budget.services.accounts import AccountError
from smart_budget.services.family import FamilyError
from smart_budget.services.goals import GoalError, days_left
from smart_budget.services.reminders import ReminderError, days_until_due, is_scheduled
from smart_budget.services.simulator import SimulationError
from smart_budget.services.storage import NotFoundError


# Page configuration
st.set_page_config(
    page_title="Smart Budget",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)

PAGES = [
    "📊 Dashboard",
    "➕ Add Transaction",
    "📩 Auto Extract",
    "💬 Assistant",
    "🏦 Accounts",
    "📈 Reports",
    "🎯 Saving Goals",
    "🔔 Reminders & Alerts",
    "👨‍👩‍👧 Family",
    "🔮 What-If",
    "⚙️ Settings",
]

DEMO_SMS = (
    "INR 1,234.56 debited from A/C XXXX1234 on 15/02/2024 at AMAZON.IN "
    "for online shopping. Available bal: INR 45,678.90"
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components(user_id: str) -> AppComponents:
    """Get or create application components for a user (cached)."""
    return create_app_components(user_id=user_id)


def rupees(amount) -> str:
    return f"₹{float(amount):,.2f}"


def main():
    """Main application entry point."""
    settings = get_settings().app

    st.sidebar.title("💰 Smart Budget")
    user_id = st.sidebar.text_input("Profile", value=settings.default_user_id)
    try:
        components = get_components(user_id.strip() or settings.default_user_id)
    except Exception as e:
        st.error(f"Failed to open profile: {e}")
        st.stop()

    st.sidebar.markdown("---")
    page = st.sidebar.radio("Navigate to:", PAGES, index=0)

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Quick add from anywhere:**
        - "Spent ₹250 on Swiggy"
        - "Received 50000 salary"
        - Paste a bank SMS on *Auto Extract*
        """
    )

    if page == "📊 Dashboard":
        render_dashboard_page(components)
    elif page == "➕ Add Transaction":
        render_add_transaction_page(components)
    elif page == "📩 Auto Extract":
        render_extract_page(components)
    elif page == "💬 Assistant":
        render_assistant_page(components)
    elif page == "🏦 Accounts":
        render_accounts_page(components)
    elif page == "📈 Reports":
        render_reports_page(components)
    elif page == "🎯 Saving Goals":
        render_goals_page(components)
    elif page == "🔔 Reminders & Alerts":
        render_reminders_page(components)
    elif page == "👨‍👩‍👧 Family":
        render_family_page(components)
    elif page == "🔮 What-If":
        render_simulator_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_dashboard_page(components: AppComponents):
    """Render the overview page."""
    st.title("📊 Dashboard")

    accounts = run_async(components.accounts.list_accounts())
    col1, col2 = st.columns(2)
    with col1:
        time_range = st.selectbox(
            "Period",
            options=list(TimeRange),
            index=1,
            format_func=lambda r: {"week": "Last 7 days", "month": "Last 30 days",
                                   "year": "Last 365 days", "all": "All time"}[r.value],
        )
    with col2:
        account = st.selectbox(
            "Account",
            options=[None] + accounts,
            format_func=lambda a: "All accounts" if a is None else f"{a.name} (••{a.last_four_digits})",
        )

    summary, categories, months = run_async(components.reports.dashboard(
        time_range=time_range,
        account_id=account.id if account else None,
    ))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", rupees(summary.income))
    col2.metric("Expenses", rupees(summary.expenses))
    col3.metric("Net", rupees(summary.net))
    col4.metric("Savings rate", f"{summary.savings_rate:.1f}%")

    for insight in run_async(components.alert_flow.insights()):
        st.info(f"💡 {insight}")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Spending by category")
        if categories:
            st.bar_chart({
                "Category": [c.category for c in categories],
                "Amount": [c.amount for c in categories],
            }, x="Category", y="Amount")
        else:
            st.caption("No expenses in this period.")
    with col2:
        st.subheader("Monthly trend")
        if months:
            ordered = list(reversed(months))
            st.line_chart({
                "Month": [m.month for m in ordered],
                "Income": [m.income for m in ordered],
                "Expenses": [m.expenses for m in ordered],
            }, x="Month", y=["Income", "Expenses"])
        else:
            st.caption("No transactions yet.")

    st.subheader("Recent transactions")
    recent = run_async(components.transactions.recent(limit=10))
    if not recent:
        st.info("No transactions yet. Add one on the 'Add Transaction' page.")
        return
    for t in recent:
        col1, col2, col3, col4 = st.columns([3, 2, 1, 1])
        sign = "+" if t.type == TransactionType.CREDIT else "-"
        col1.markdown(f"**{t.merchant}** · {t.category.value}  \n{t.transaction_date:%d %b %Y}")
        col2.markdown(f"{sign}{rupees(t.amount)}")
        if col3.button("✏️", key=f"edit_{t.id}"):
            st.session_state.editing_id = None if st.session_state.get("editing_id") == t.id else t.id
            st.rerun()
        if col4.button("🗑️", key=f"del_{t.id}"):
            run_async(components.transactions.delete_transaction(t.id))
            st.rerun()
        if st.session_state.get("editing_id") == t.id:
            render_edit_transaction(components, t, accounts)


def render_edit_transaction(components: AppComponents, t, accounts):
    """Inline form for correcting a saved transaction."""
    account_ids = [None] + [a.id for a in accounts]
    names = {a.id: f"{a.name} (••{a.last_four_digits})" for a in accounts}

    with st.form(f"edit_form_{t.id}"):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input(
                "Amount (₹) *", value=float(t.amount), min_value=0.0, step=10.0, format="%.2f",
            )
            transaction_type = st.radio(
                "Type",
                options=list(TransactionType),
                index=list(TransactionType).index(t.type),
                format_func=lambda x: "Expense" if x == TransactionType.DEBIT else "Income",
                horizontal=True,
            )
            merchant = st.text_input("Merchant / Payee", value=t.merchant)
            description = st.text_input("Description", value=t.description or "")
        with col2:
            category = st.selectbox(
                "Category",
                options=list(Category),
                index=list(Category).index(t.category),
                format_func=lambda c: c.value,
            )
            transaction_date = st.date_input("Date", value=t.transaction_date)
            account_id = st.selectbox(
                "Account",
                options=account_ids,
                index=account_ids.index(t.bank_account_id) if t.bank_account_id in account_ids else 0,
                format_func=lambda i: "None" if i is None else names[i],
            )
        col1, col2 = st.columns(2)
        save = col1.form_submit_button("💾 Save changes", type="primary")
        cancel = col2.form_submit_button("Cancel")

    if cancel:
        st.session_state.editing_id = None
        st.rerun()
    if save:
        if amount <= 0:
            st.error("Please enter a valid amount")
            return
        changes = {
            "amount": Decimal(str(amount)),
            "type": transaction_type,
            "merchant": merchant.strip() or t.merchant,
            "description": description,
            "category": category,
            "transaction_date": transaction_date,
            "bank_account_id": account_id,
        }
        if category != t.category:
            changes["subcategory"] = None
        try:
            run_async(components.transactions.update_transaction(t.id, **changes))
        except (NotFoundError, ValueError) as e:
            st.error(str(e))
            return
        st.session_state.editing_id = None
        st.success("✅ Transaction updated")
        st.rerun()


def render_add_transaction_page(components: AppComponents):
    """Render the manual entry page."""
    st.title("➕ Add Transaction")
    st.markdown("Record cash, card or bank transactions by hand.")

    accounts = run_async(components.accounts.list_accounts())

    with st.form("add_transaction", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            transaction_type = st.radio(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: "Expense" if t == TransactionType.DEBIT else "Income",
                horizontal=True,
            )
            amount = st.number_input("Amount (₹) *", min_value=0.0, step=10.0, format="%.2f")
            merchant = st.text_input("Merchant / Payee", placeholder="e.g. Swiggy")
            description = st.text_input("Description", placeholder="e.g. Dinner with friends")
        with col2:
            category = st.selectbox(
                "Category",
                options=[None] + list(Category),
                format_func=lambda c: "Auto-detect" if c is None else c.value,
            )
            transaction_date = st.date_input("Date", value=date.today())
            source = st.selectbox(
                "Paid with",
                options=[TransactionSource.MANUAL, TransactionSource.CASH, TransactionSource.CREDIT_CARD],
                format_func=lambda s: {"manual": "Bank / UPI", "cash": "Cash",
                                       "credit_card": "Credit card"}[s.value],
            )
            account = st.selectbox(
                "Account",
                options=[None] + accounts,
                format_func=lambda a: "None" if a is None else f"{a.name} (••{a.last_four_digits})",
            )

        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        if amount <= 0:
            st.error("Please enter a valid amount")
            return
        transaction = run_async(components.transactions.add_transaction(
            amount=Decimal(str(amount)),
            transaction_type=transaction_type,
            merchant=merchant.strip() or "Unknown",
            description=description,
            category=category,
            transaction_date=transaction_date,
            bank_account_id=account.id if account else None,
            source=source,
        ))
        st.success(
            f"✅ Saved {rupees(transaction.amount)} at {transaction.merchant} "
            f"({transaction.category.value})"
        )


def render_extract_page(components: AppComponents):
    """Render the SMS / email / voice extraction page."""
    st.title("📩 Auto Extract")
    st.markdown("Paste a bank SMS, a payment email or a voice note transcript.")

    flow = components.transaction_flow

    # Initialize session state
    if "extract_state" not in st.session_state:
        st.session_state.extract_state = "idle"  # idle, reviewing, saved
    if "correlation_id" not in st.session_state:
        st.session_state.correlation_id = None

    source = st.radio(
        "Source",
        options=[TransactionSource.SMS, TransactionSource.EMAIL, TransactionSource.VOICE],
        format_func=lambda s: s.value.upper() if s != TransactionSource.VOICE else "Voice",
        horizontal=True,
    )

    if source == TransactionSource.SMS and st.checkbox("Several messages at once (one per line)"):
        render_sms_batch(components)
        return

    if source == TransactionSource.EMAIL:
        subject = st.text_input("Subject")
        body = st.text_area("Body", height=150)
        text = f"{subject}\n{body}"
    else:
        text = st.text_area(
            "Message",
            value=DEMO_SMS if source == TransactionSource.SMS else "",
            height=120,
            placeholder="e.g. Spent 200 rupees at Starbucks" if source == TransactionSource.VOICE else "",
        )

    if st.session_state.extract_state == "idle" and st.button("🔍 Extract", type="primary"):
        st.session_state.correlation_id = create_correlation_id()
        extracted, message = run_async(flow.extract(
            source, text, correlation_id=st.session_state.correlation_id,
        ))
        if extracted is None:
            st.markdown(f"""
            <div class="error-box">
                <h4>❌ Nothing found</h4>
                <p>{message}</p>
            </div>
            """, unsafe_allow_html=True)
            st.stop()

        validation, val_message = run_async(flow.validate_extraction(
            extracted, correlation_id=st.session_state.correlation_id,
        ))
        st.session_state.extracted = extracted
        st.session_state.validation = validation
        st.session_state.val_message = val_message
        st.session_state.extract_state = "reviewing"
        st.rerun()

    if st.session_state.extract_state == "reviewing":
        extracted = st.session_state.extracted
        validation = st.session_state.validation

        st.markdown("---")
        st.subheader("📋 Review Extracted Transaction")
        box = "success-box" if validation.is_valid and not validation.warnings else "warning-box"
        st.markdown(f"""
        <div class="{box}">
            <p>{st.session_state.val_message}</p>
        </div>
        """, unsafe_allow_html=True)

        accounts = run_async(components.accounts.list_accounts())
        account_ids = [None] + [a.id for a in accounts]
        names = {a.id: f"{a.name} (••{a.last_four_digits})" for a in accounts}

        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input(
                "Amount (₹) *",
                value=float(extracted.amount or 0),
                min_value=0.0,
                step=1.0,
                format="%.2f",
            )
            transaction_type = st.radio(
                "Type",
                options=list(TransactionType),
                index=list(TransactionType).index(extracted.transaction_type),
                format_func=lambda t: "Expense" if t == TransactionType.DEBIT else "Income",
                horizontal=True,
            )
            merchant = st.text_input("Merchant", value=extracted.merchant or "")
        with col2:
            category = st.selectbox(
                "Category",
                options=list(Category),
                index=list(Category).index(extracted.category or Category.OTHER),
                format_func=lambda c: c.value,
            )
            transaction_date = st.date_input(
                "Date", value=extracted.transaction_date or date.today(),
            )
            account_id = st.selectbox(
                "Account",
                options=account_ids,
                index=account_ids.index(extracted.matched_account_id)
                if extracted.matched_account_id in account_ids else 0,
                format_func=lambda i: "None" if i is None else names[i],
            )

        confidence = extracted.confidence_score
        st.markdown(
            f"**Extraction Confidence:** {confidence:.0%} "
            f"{'🟢' if confidence >= 0.8 else '🟡' if confidence >= 0.6 else '🔴'}"
        )

        col1, col2 = st.columns(2)
        with col1:
            if st.button("✅ Confirm and Save", type="primary"):
                if amount <= 0:
                    st.error("Please enter a valid amount")
                else:
                    transaction = run_async(flow.confirm_and_save(
                        extracted,
                        amount=Decimal(str(amount)),
                        transaction_type=transaction_type,
                        merchant=merchant.strip() or None,
                        category=category if category != extracted.category else None,
                        transaction_date=transaction_date,
                        bank_account_id=account_id,
                        correlation_id=st.session_state.correlation_id,
                    ))
                    st.session_state.saved_transaction = transaction
                    st.session_state.extract_state = "saved"
                    st.rerun()
        with col2:
            if st.button("❌ Reject / Start Over"):
                run_async(flow.reject_extraction(
                    extracted,
                    reason="User rejected",
                    correlation_id=st.session_state.correlation_id,
                ))
                st.session_state.extract_state = "idle"
                st.rerun()

    if st.session_state.extract_state == "saved":
        t = st.session_state.saved_transaction
        st.markdown(f"""
        <div class="success-box">
            <h3>✅ Transaction Saved</h3>
            <p><strong>Merchant:</strong> {t.merchant}</p>
            <p><strong>Amount:</strong> {rupees(t.amount)}</p>
            <p><strong>Category:</strong> {t.category.value}</p>
            <p><strong>Date:</strong> {t.transaction_date:%d %B %Y}</p>
        </div>
        """, unsafe_allow_html=True)
        if st.button("📩 Extract Another"):
            st.session_state.extract_state = "idle"
            st.rerun()


def render_sms_batch(components: AppComponents):
    """Extract several pasted SMS alerts and save the ones the user ticks."""
    flow = components.transaction_flow
    pasted = st.text_area("Messages", height=200, placeholder="Paste one bank SMS per line")

    if st.button("🔍 Extract all", type="primary"):
        messages = [line.strip() for line in pasted.splitlines() if line.strip()]
        st.session_state.batch_correlation_id = create_correlation_id()
        st.session_state.batch = run_async(flow.extract_sms_batch(
            messages, correlation_id=st.session_state.batch_correlation_id,
        ))
        st.session_state.batch_skipped = len(messages) - len(st.session_state.batch)

    batch = st.session_state.get("batch")
    if not batch:
        if batch is not None:
            st.warning("None of these messages look like bank transactions.")
        return

    skipped = st.session_state.get("batch_skipped", 0)
    st.subheader(f"📋 {len(batch)} transactions found")
    if skipped:
        st.caption(f"{skipped} message{'s' if skipped != 1 else ''} skipped")

    selected = []
    for i, extracted in enumerate(batch):
        kind = "+" if extracted.transaction_type == TransactionType.CREDIT else "-"
        label = (
            f"{kind}{rupees(extracted.amount)} · {extracted.merchant or 'Unknown'} · "
            f"{(extracted.category or Category.OTHER).value}"
        )
        if extracted.transaction_date:
            label += f" · {extracted.transaction_date:%d %b %Y}"
        if st.checkbox(label, value=True, key=f"batch_{extracted.extraction_id}"):
            selected.append(extracted)

    if st.button(f"✅ Save {len(selected)} selected", disabled=not selected):
        correlation_id = st.session_state.batch_correlation_id
        for extracted in selected:
            run_async(flow.confirm_and_save(extracted, correlation_id=correlation_id))
        saved_ids = {e.extraction_id for e in selected}
        for extracted in batch:
            if extracted.extraction_id not in saved_ids:
                run_async(flow.reject_extraction(
                    extracted, reason="Not selected", correlation_id=correlation_id,
                ))
        st.session_state.batch = None
        st.success(f"✅ Saved {len(selected)} transactions")


def render_assistant_page(components: AppComponents):
    """Render the chat assistant."""
    st.title("💬 Assistant")
    st.markdown("Ask about your spending, or tell me about a purchase to log it.")

    if "chat_history" not in st.session_state:
        st.session_state.chat_history = []
    if "pending_proposal" not in st.session_state:
        st.session_state.pending_proposal = None

    for role, text in st.session_state.chat_history:
        with st.chat_message(role):
            st.markdown(text)

    proposal = st.session_state.pending_proposal
    if proposal is not None:
        col1, col2 = st.columns(2)
        if col1.button("✅ Save it", type="primary"):
            transaction = run_async(components.transaction_flow.confirm_and_save(proposal))
            st.session_state.chat_history.append(
                ("assistant", f"Saved {rupees(transaction.amount)} at {transaction.merchant}.")
            )
            st.session_state.pending_proposal = None
            st.rerun()
        if col2.button("❌ Discard"):
            run_async(components.transaction_flow.reject_extraction(proposal, reason="Discarded in chat"))
            st.session_state.pending_proposal = None
            st.rerun()

    message = st.chat_input("e.g. How much did I spend this month?")
    if message:
        reply = run_async(components.assistant_flow.answer(message))
        st.session_state.chat_history.append(("user", message))
        st.session_state.chat_history.append(("assistant", reply.message))
        st.session_state.pending_proposal = reply.proposal
        st.rerun()


def render_accounts_page(components: AppComponents):
    """Render the bank accounts page."""
    st.title("🏦 Bank Accounts")
    st.markdown("Add the last four digits of each account so SMS alerts can be matched to it.")

    with st.form("add_account", clear_on_submit=True):
        col1, col2 = st.columns(2)
        name = col1.text_input("Account name *", placeholder="e.g. HDFC Savings")
        digits = col2.text_input("Last 4 digits *", max_chars=4)
        if st.form_submit_button("➕ Add Account", type="primary"):
            try:
                run_async(components.accounts.add_account(name, digits))
                st.success(f"✅ Added {name}")
            except AccountError as e:
                st.error(str(e))

    summaries = run_async(components.accounts.summaries())
    if not summaries:
        st.info("No accounts yet.")
        return

    st.metric("Total balance", rupees(sum(s.balance for s in summaries)))
    for s in summaries:
        with st.expander(f"{s.account.name} (••{s.account.last_four_digits}) · {rupees(s.balance)}"):
            col1, col2, col3 = st.columns(3)
            col1.metric("Income", rupees(s.income))
            col2.metric("Expenses", rupees(s.expenses))
            col3.metric("Transactions", s.transaction_count)
            if st.button("🗑️ Delete account", key=f"del_acc_{s.account.id}"):
                unlinked = run_async(components.accounts.delete_account(s.account.id))
                st.success(f"Deleted. {unlinked} transaction(s) kept without an account.")
                st.rerun()


def render_reports_page(components: AppComponents):
    """Render the monthly report page."""
    st.title("📈 Reports")

    transactions = run_async(components.reports.all_transactions())
    years = available_years(transactions) or [date.today().year]

    col1, col2 = st.columns(2)
    year = col1.selectbox("Year", options=years)
    months = available_months(transactions, year) or [date.today().month]
    month = col2.selectbox(
        "Month",
        options=months,
        index=len(months) - 1,
        format_func=lambda m: calendar.month_name[m],
    )

    report = run_async(components.reports.monthly_report(year, month))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", rupees(report.summary.income))
    col2.metric("Expenses", rupees(report.summary.expenses))
    col3.metric("Net", rupees(report.summary.net))
    col4.metric("Transactions", report.summary.transaction_count)

    st.subheader("Daily spending")
    st.bar_chart({
        "Day": [p.day.day for p in report.daily],
        "Expenses": [p.expenses for p in report.daily],
    }, x="Day", y="Expenses")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Categories")
        st.dataframe(
            [{"Category": c.category, "Amount": c.amount, "Count": c.count,
              "Share %": c.percent} for c in report.categories],
            use_container_width=True,
        )
    with col2:
        st.subheader("Accounts")
        st.dataframe(
            [{"Account": a.account_name, "Income": a.income, "Expenses": a.expenses,
              "Net": a.net} for a in report.accounts],
            use_container_width=True,
        )

    st.subheader("Last 30 days")
    points = daily_series(transactions, days=30)
    st.line_chart({
        "Date": [p.day.isoformat() for p in points],
        "Income": [p.income for p in points],
        "Expenses": [p.expenses for p in points],
    }, x="Date", y=["Income", "Expenses"])


def render_goals_page(components: AppComponents):
    """Render the saving goals page."""
    st.title("🎯 Saving Goals")

    with st.form("add_goal", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Goal name *", placeholder="e.g. New laptop")
            target = st.number_input("Target amount (₹) *", min_value=0.0, step=1000.0)
            current = st.number_input("Already saved (₹)", min_value=0.0, step=1000.0)
        with col2:
            deadline = st.date_input("Deadline *", value=date.today() + timedelta(days=180))
            priority = st.selectbox(
                "Priority", options=list(GoalPriority), index=1,
                format_func=lambda p: p.value.title(),
            )
            category = st.text_input("Category", value="General")
        description = st.text_area("Description")

        if st.form_submit_button("🎯 Create Goal", type="primary"):
            try:
                goal = run_async(components.goals.create_goal(
                    name=name,
                    target_amount=Decimal(str(target)),
                    deadline=deadline,
                    priority=priority,
                    category=category,
                    description=description,
                    current_amount=Decimal(str(current)),
                ))
                s = goal.suggestion
                st.success(
                    f"✅ Save {rupees(s.monthly_amount)} a month or "
                    f"{rupees(s.weekly_amount)} a week. {s.feasibility}."
                )
            except GoalError as e:
                st.error(str(e))

    goals = run_async(components.goals.list_goals())
    if not goals:
        st.info("No saving goals yet.")
        return

    for goal in goals:
        remaining_days = days_left(goal)
        due = f"{remaining_days} days left" if remaining_days >= 0 else f"{-remaining_days} days overdue"
        with st.expander(f"{goal.name} · {goal.progress_percent:.0f}% · {due}"):
            st.progress(min(goal.progress_percent / 100, 1.0))
            st.markdown(
                f"{rupees(goal.current_amount)} of {rupees(goal.target_amount)} "
                f"· {goal.priority.value.title()} priority · {goal.status.value.replace('_', ' ')}"
            )
            if goal.suggestion:
                st.caption(
                    f"Suggested: {rupees(goal.suggestion.monthly_amount)}/month, "
                    f"{rupees(goal.suggestion.weekly_amount)}/week · {goal.suggestion.feasibility}"
                )
            col1, col2, col3 = st.columns([2, 1, 1])
            amount = col1.number_input(
                "Add money", min_value=0.0, step=500.0, key=f"contrib_{goal.id}",
            )
            if col2.button("➕ Add", key=f"add_{goal.id}"):
                try:
                    run_async(components.goals.contribute(goal.id, Decimal(str(amount))))
                    st.rerun()
                except GoalError as e:
                    st.error(str(e))
            if col3.button("🗑️ Delete", key=f"del_goal_{goal.id}"):
                run_async(components.goals.delete_goal(goal.id))
                st.rerun()


def render_reminders_page(components: AppComponents):
    """Render reminders, budgets and alerts."""
    st.title("🔔 Reminders & Alerts")

    alerts = run_async(components.alert_flow.collect())
    if alerts:
        st.subheader("Alerts")
        for alert in alerts:
            text = f"**{alert.title}**  \n{alert.message}"
            if alert.level == AlertLevel.HIGH:
                st.error(text)
            elif alert.level == AlertLevel.WARNING:
                st.warning(text)
            else:
                st.info(text)

    tab_reminders, tab_budgets = st.tabs(["Payment reminders", "Budgets"])

    with tab_reminders:
        with st.form("add_reminder", clear_on_submit=True):
            col1, col2, col3 = st.columns(3)
            title = col1.text_input("Title *", placeholder="e.g. Credit card bill")
            amount = col2.number_input("Amount (₹) *", min_value=0.0, step=100.0)
            due_day = col3.number_input("Due day *", min_value=1, max_value=31, value=1)
            col1, col2, col3 = st.columns(3)
            reminder_type = col1.selectbox(
                "Type", options=list(ReminderType),
                format_func=lambda t: t.value.replace("_", " ").title(),
            )
            frequency = col2.selectbox(
                "Repeats", options=list(ReminderFrequency),
                format_func=lambda f: f.value.replace("_", " ").title(),
            )
            account = col3.text_input("Pay from", value="cash")
            if st.form_submit_button("➕ Add Reminder", type="primary"):
                try:
                    run_async(components.reminders.add_reminder(
                        title=title,
                        amount=Decimal(str(amount)),
                        due_day=int(due_day),
                        reminder_type=reminder_type,
                        frequency=frequency,
                        account=account,
                    ))
                    st.success("✅ Reminder added")
                except ReminderError as e:
                    st.error(str(e))

        for r in run_async(components.reminders.list_reminders()):
            col1, col2, col3 = st.columns([4, 1, 1])
            if r.completed:
                status = "✅"
            elif is_scheduled(r):
                days = days_until_due(r)
                status = "⏰ today" if days == 0 else f"in {days} days"
            else:
                status = r.frequency.value.replace("_", " ")
            col1.markdown(f"**{r.title}** · {rupees(r.amount)} · day {r.due_day} · {status}")
            if col2.button("✔️" if not r.completed else "↩️", key=f"toggle_{r.id}"):
                run_async(components.reminders.toggle_completed(r.id))
                st.rerun()
            if col3.button("🗑️", key=f"del_rem_{r.id}"):
                run_async(components.reminders.delete_reminder(r.id))
                st.rerun()

    with tab_budgets:
        with st.form("set_budget", clear_on_submit=True):
            col1, col2 = st.columns(2)
            category = col1.selectbox("Category", options=list(Category), format_func=lambda c: c.value)
            limit = col2.number_input("Monthly limit (₹)", min_value=0.0, step=500.0)
            if st.form_submit_button("💾 Set Budget", type="primary"):
                if limit <= 0:
                    st.error("Please enter a valid amount")
                else:
                    run_async(components.budgets.set_budget(category, Decimal(str(limit))))
                    st.success("✅ Budget saved")
        for b in run_async(components.budgets.list_budgets()):
            col1, col2 = st.columns([5, 1])
            col1.markdown(f"**{b.category.value}** · {rupees(b.amount)} {b.period.value}")
            if col2.button("🗑️", key=f"del_budget_{b.id}"):
                run_async(components.budgets.delete_budget(b.id))
                st.rerun()


def render_family_page(components: AppComponents):
    """Render family sharing."""
    st.title("👨‍👩‍👧 Family")

    with st.form("invite", clear_on_submit=True):
        email = st.text_input("Invite by email")
        if st.form_submit_button("📨 Invite", type="primary"):
            try:
                member = run_async(components.family.invite_member(email))
                st.success(
                    f"Invited {member.email}. Share this code with them: "
                    f"**{member.verification_code}**"
                )
            except FamilyError as e:
                st.error(str(e))

    for member in run_async(components.family.list_members()):
        with st.expander(f"{member.name} · {member.email} · {member.status.value}"):
            if member.status.value == "pending":
                code = st.text_input("Verification code", max_chars=6, key=f"code_{member.id}")
                if st.button("✔️ Verify", key=f"verify_{member.id}"):
                    try:
                        run_async(components.family.verify_member(member.id, code))
                        st.rerun()
                    except (FamilyError, NotFoundError) as e:
                        st.error(str(e))
            else:
                st.caption(f"Joined {member.joined_date:%d %b %Y}" if member.joined_date else "")
                label = "🙈 Stop sharing" if member.shared_data else "👀 Share data"
                if st.button(label, key=f"share_{member.id}"):
                    run_async(components.family.toggle_sharing(member.id))
                    st.rerun()
            if st.button("🗑️ Remove", key=f"remove_{member.id}"):
                run_async(components.family.remove_member(member.id))
                st.rerun()

    st.markdown("---")
    st.subheader("Family overview")
    time_range = st.selectbox(
        "Period", options=list(TimeRange), index=1, format_func=lambda r: r.value.title(),
        key="family_range",
    )
    own = run_async(components.reports.all_transactions())
    overview = run_async(components.family.overview(own, time_range))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", rupees(overview.total_income))
    col2.metric("Expenses", rupees(overview.total_expenses))
    col3.metric("Net", rupees(overview.net))
    col4.metric("Members", overview.member_count)
    st.dataframe(
        [{"Member": m.name, "Income": m.income, "Expenses": m.expenses,
          "Transactions": m.transaction_count} for m in overview.members],
        use_container_width=True,
    )


def render_simulator_page(components: AppComponents):
    """Render the what-if simulator."""
    st.title("🔮 What-If")
    st.markdown("See how a change in spending or income plays out over the coming months.")

    if "scenario" not in st.session_state:
        st.session_state.scenario = []

    with st.form("add_change", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        change_type = col1.selectbox(
            "Change", options=list(ChangeType),
            format_func=lambda c: c.value.replace("_", " ").title(),
        )
        amount = col2.number_input("Amount (₹)", min_value=0.0, step=500.0)
        frequency = col3.selectbox(
            "How often", options=list(ChangeFrequency), index=2,
            format_func=lambda f: f.value.replace("_", " ").title(),
        )
        description = st.text_input("Description", placeholder="e.g. Cook at home more")
        if st.form_submit_button("➕ Add to scenario"):
            if amount <= 0:
                st.error("Please enter a valid amount")
            else:
                st.session_state.scenario.append(ScenarioChange(
                    change_type=change_type,
                    amount=Decimal(str(amount)),
                    frequency=frequency,
                    description=description,
                ))

    for i, change in enumerate(st.session_state.scenario):
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{change.change_type.value.replace('_', ' ').title()} · "
            f"{rupees(change.amount)} {change.frequency.value.replace('_', ' ')} · {change.description}"
        )
        if col2.button("🗑️", key=f"del_change_{i}"):
            st.session_state.scenario.pop(i)
            st.rerun()

    months = st.slider("Months to project", min_value=1, max_value=60, value=12)
    if st.button("🔮 Run simulation", type="primary"):
        transactions = run_async(components.reports.all_transactions())
        starting_balance = run_async(components.accounts.total_balance())
        try:
            result = components.simulator.simulate(
                transactions,
                st.session_state.scenario,
                starting_balance=starting_balance,
                months=months,
            )
        except SimulationError as e:
            st.error(str(e))
            return

        col1, col2, col3 = st.columns(3)
        col1.metric("Monthly impact", rupees(result.monthly_impact))
        col2.metric("Projected monthly expenses", rupees(result.projected_monthly_expenses),
                    delta=f"{result.projected_monthly_expenses - result.baseline_monthly_expenses:,.0f}",
                    delta_color="inverse")
        col3.metric(f"Balance after {months} months", rupees(result.final_balance))
        st.line_chart({
            "Month": [p.label for p in result.projections],
            "Balance": [p.balance for p in result.projections],
        }, x="Month", y="Balance")


def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    settings = get_settings().app
    st.markdown("### Storage")
    st.markdown(f"**Backend:** {settings.storage_backend}")
    st.markdown(f"**Profile:** {components.user_id}")

    status = validate_all_settings()
    if settings.storage_backend == "google_sheets":
        if status.get("google_sheets", False):
            st.success("✅ Google Sheets - Configured")
        else:
            st.error(f"❌ Google Sheets - {status.get('google_sheets_error', 'Not configured')}")

    st.markdown("### Notifications")
    st.markdown(
        f"- Daily expense reminder: {'on' if settings.daily_reminder_enabled else 'off'}\n"
        f"- Weekly report: {'on' if settings.weekly_report_enabled else 'off'}\n"
        f"- Payment reminders shown {settings.reminder_due_soon_days} days ahead"
    )

    st.markdown("### Recent activity")
    if components.audit_storage:
        events = run_async(components.audit_storage.get_recent_events(limit=20))
        for event in events:
            st.caption(f"{event.timestamp:%d %b %H:%M} · {event.description}")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
