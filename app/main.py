"""
Streamlit Frontend for the Personal Ledger

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every number on screen comes from the valuation engine or reports
3. Clear error messages in simple language
4. Visual feedback for all operations (including failed syncs)
5. No hidden actions

Pages:
- Dashboard: this month, this year, net worth today, charts
- Assets: month selector, values, bulk update, price refresh
- Calendar: net worth and transactions on any day
- Transactions: add, edit, delete
- AI Analysis: detailed report, quick tip, advisor chat
"""

import asyncio

import streamlit as st

from app.display import (
    ASSET_TYPE_DISPLAY,
    CATEGORY_DISPLAY,
    asset_type_label,
    category_label,
    format_amount,
    format_gain_rate,
)
from src.agents import ChatTurn
from src.ledger import LedgerError
from src.models.ledger import (
    ASSET_TYPE_ORDER,
    TransactionCategory,
    TransactionType,
    ValuationSnapshot,
)
from src.orchestrator import LedgerSession, create_app_components
from src.reports import expense_breakdown, monthly_flow, transactions_on
from src.services.storage import StorageError
from src.validation import LedgerValidator


# Page configuration
st.set_page_config(
    page_title="Personal Ledger",
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
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_session(user_id: str) -> LedgerSession:
    """Get or create the loaded ledger session for a user."""
    sessions = st.session_state.setdefault("ledger_sessions", {})
    if user_id not in sessions:
        session = create_app_components(user_id)
        try:
            run_async(session.load())
        except StorageError as e:
            st.error(f"Could not load your ledger: {e}")
        sessions[user_id] = session
    return sessions[user_id]


def run_mutation(coro, success_message: str) -> bool:
    """Run a ledger mutation and report the outcome to the user."""
    try:
        run_async(coro)
    except LedgerError as e:
        st.error(f"❌ {e}")
        return False
    except StorageError as e:
        st.warning(f"⚠️ Saved on this device, but syncing failed: {e}")
        return False
    st.success(success_message)
    return True


def main():
    """Main application entry point."""
    st.sidebar.title("💰 Personal Ledger")
    user_id = st.sidebar.text_input("User", value="local_user").strip() or "local_user"
    session = get_session(user_id)

    st.sidebar.markdown("---")
    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "💎 Assets", "📅 Calendar", "🧾 Transactions", "🤖 AI Analysis", "⚙️ Settings"],
        index=0,
    )

    if session.sync_error:
        st.sidebar.error(f"Sync failed: {session.sync_error}")
        if st.sidebar.button("🔄 Retry sync"):
            run_mutation(session.sync(), "✅ Synced")
    if session.validation and session.validation.issues:
        with st.sidebar.expander(f"⚠️ {len(session.validation.issues)} data issue(s)"):
            st.text(LedgerValidator().get_user_friendly_summary(session.validation))

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(session)
    elif page == "💎 Assets":
        render_assets_page(session)
    elif page == "📅 Calendar":
        render_calendar_page(session)
    elif page == "🧾 Transactions":
        render_transactions_page(session)
    elif page == "🤖 AI Analysis":
        render_ai_page(session)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_snapshot(snapshot: ValuationSnapshot):
    """Totals plus one row per asset, in display order."""
    col1, col2, col3 = st.columns(3)
    col1.metric("Total assets", format_amount(snapshot.total_assets))
    col2.metric("Total liabilities", format_amount(snapshot.total_liabilities))
    col3.metric("Net worth", format_amount(snapshot.net_worth))

    if snapshot.degraded_asset_ids:
        st.caption(
            f"ℹ️ {len(snapshot.degraded_asset_ids)} asset(s) had no recorded value "
            "on this date and are shown at their purchase amount."
        )

    for asset in snapshot.all_assets:
        cols = st.columns([3, 2, 2, 2])
        cols[0].markdown(f"**{asset.name}**  \n{asset_type_label(asset.type)}")
        cols[1].markdown(f"Value  \n{format_amount(asset.context_value)}")
        cols[2].markdown(f"Purchase  \n{format_amount(asset.purchase_amount or 0)}")
        cols[3].markdown(f"Change  \n{format_gain_rate(asset.gain_rate)}")


def render_dashboard_page(session: LedgerSession):
    """Render the summary cards and charts."""
    st.title("📊 Dashboard")
    summary = session.summary()

    st.markdown(f"### This month ({summary.today:%B %Y})")
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_amount(summary.month.income))
    col2.metric("Expense", format_amount(summary.month.expense))
    col3.metric("Balance", format_amount(summary.month.balance))
    st.progress(
        summary.budget_usage_percent / 100,
        text=f"Budget used: {summary.budget_usage_percent}% of {format_amount(summary.monthly_budget)}",
    )

    st.markdown(f"### This year ({summary.today.year})")
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_amount(summary.year.income))
    col2.metric("Expense", format_amount(summary.year.expense))
    col3.metric("Net worth today", format_amount(summary.snapshot.net_worth))

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.markdown("#### Spending by category")
        breakdown = expense_breakdown(session.transactions)
        if breakdown:
            st.bar_chart({
                "category": [CATEGORY_DISPLAY[item.category]["label"] for item in breakdown],
                "total": [item.total for item in breakdown],
            }, x="category", y="total")
        else:
            st.info("No expenses yet.")

    with right:
        st.markdown("#### Cash flow (last 6 months)")
        flow = monthly_flow(session.transactions, months=6)
        if flow:
            st.bar_chart({
                "month": [bucket.month for bucket in flow],
                "income": [bucket.income for bucket in flow],
                "expense": [bucket.expense for bucket in flow],
            }, x="month", y=["income", "expense"], color=["#10b981", "#f43f5e"])
        else:
            st.info("No transactions yet.")


def render_assets_page(session: LedgerSession):
    """Render the asset portfolio for a selected month."""
    st.title("💎 Assets")
    today = session.clock.today()

    col1, col2 = st.columns(2)
    with col1:
        year = st.number_input("Year", min_value=1970, max_value=today.year + 1, value=today.year)
    with col2:
        month = st.selectbox("Month", options=list(range(1, 13)), index=today.month - 1)

    snapshot = run_async(session.snapshot_for_month(int(year), int(month)))
    if snapshot.is_current_period:
        st.caption("Current month: showing live values.")
    else:
        st.caption(f"Showing recorded values as of {snapshot.reference_date.isoformat()}.")
    render_snapshot(snapshot)

    breakdown = snapshot.breakdown_by_type()
    if breakdown:
        st.bar_chart({
            "type": [ASSET_TYPE_DISPLAY[t]["label"] for t in breakdown],
            "value": list(breakdown.values()),
        }, x="type", y="value")

    st.markdown("---")
    with st.expander("➕ Add an asset"):
        with st.form("add_asset"):
            name = st.text_input("Name")
            asset_type = st.selectbox(
                "Type",
                options=ASSET_TYPE_ORDER,
                format_func=asset_type_label,
            )
            purchase = st.number_input("Purchase amount", min_value=0.0, step=1000.0)
            value = st.number_input("Current value", min_value=0.0, step=1000.0)
            as_of = st.date_input("As of", value=today)
            ticker = st.text_input("Ticker (stocks and crypto)")
            quantity = st.number_input("Quantity", min_value=0.0, value=0.0)
            if st.form_submit_button("Add asset", type="primary"):
                run_mutation(
                    session.create_asset(
                        name,
                        asset_type,
                        purchase,
                        value,
                        as_of=as_of,
                        ticker=ticker or None,
                        quantity=quantity or None,
                    ),
                    f"✅ Added {name}",
                )

    active = [a for a in session.assets if a.is_active_on(today)]
    if active:
        with st.expander("✏️ Update values"):
            with st.form("bulk_update"):
                as_of = st.date_input("Values as of", value=today)
                updates = []
                for asset in active:
                    new_value = st.number_input(
                        f"{asset.name}",
                        value=float(asset.current_value or 0.0),
                        key=f"value_{asset.id}",
                    )
                    if new_value != (asset.current_value or 0.0):
                        updates.append({"asset_id": asset.id, "new_value": new_value})
                if st.form_submit_button("Save values", type="primary"):
                    try:
                        result = run_async(session.record_values_bulk(updates, as_of=as_of))
                        st.success(f"✅ Updated {len(result.updated)} asset(s)")
                        for failure in result.failed:
                            st.error(f"❌ {failure.reason}")
                    except StorageError as e:
                        st.warning(f"⚠️ Saved on this device, but syncing failed: {e}")

        if st.button("🔄 Refresh market prices"):
            with st.spinner("Fetching prices..."):
                try:
                    result = run_async(session.refresh_market_prices())
                    st.success(f"✅ Refreshed {len(result.updated)} asset(s)")
                    for failure in result.failed:
                        st.warning(f"⚠️ {failure.reason}")
                except StorageError as e:
                    st.warning(f"⚠️ Saved on this device, but syncing failed: {e}")

        with st.expander("🗑️ Remove an asset"):
            target = st.selectbox(
                "Asset",
                options=active,
                format_func=lambda a: f"{a.name} ({ASSET_TYPE_DISPLAY[a.type]['label']})",
            )
            removal_date = st.date_input("Removed on", value=today, key="removal_date")
            st.caption("History is kept; the asset disappears from this date on.")
            if st.button("Remove", type="secondary"):
                run_mutation(
                    session.retire_asset(target.id, removal_date),
                    f"✅ Removed {target.name}",
                )


def render_calendar_page(session: LedgerSession):
    """Render net worth and transactions for one calendar day."""
    st.title("📅 Calendar")
    day = st.date_input("Day", value=session.clock.today())

    snapshot = run_async(session.snapshot_for_day(day))
    render_snapshot(snapshot)

    st.markdown("---")
    st.markdown(f"#### Transactions on {day.isoformat()}")
    entries = transactions_on(session.transactions, day)
    if not entries:
        st.info("No transactions on this day.")
    for transaction in entries:
        sign = "+" if transaction.type == TransactionType.INCOME else "-"
        st.markdown(
            f"{category_label(transaction.category)} · {transaction.description or '-'} · "
            f"**{sign}{format_amount(transaction.amount)}**"
        )


def render_transactions_page(session: LedgerSession):
    """Render the transaction form and list."""
    st.title("🧾 Transactions")

    with st.form("add_transaction"):
        col1, col2 = st.columns(2)
        with col1:
            tx_date = st.date_input("Date", value=session.clock.today())
            tx_type = st.radio(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: t.value.title(),
                horizontal=True,
            )
        with col2:
            amount = st.number_input("Amount", min_value=0.0, step=1000.0)
            category = st.selectbox(
                "Category",
                options=list(TransactionCategory),
                format_func=category_label,
            )
        description = st.text_input("Description")
        if st.form_submit_button("Add", type="primary"):
            run_mutation(
                session.add_transaction(tx_date, amount, tx_type, category, description),
                "✅ Transaction added",
            )

    st.markdown("---")
    category_filter = st.selectbox(
        "Filter by category",
        options=[None] + list(TransactionCategory),
        format_func=lambda c: "All categories" if c is None else category_label(c),
    )

    for transaction in session.transactions:
        if category_filter is not None and transaction.category != category_filter:
            continue
        sign = "+" if transaction.type == TransactionType.INCOME else "-"
        cols = st.columns([2, 3, 2, 1])
        cols[0].markdown(f"{transaction.date.isoformat()}  \n{category_label(transaction.category)}")
        cols[1].markdown(transaction.description or "-")
        cols[2].markdown(f"**{sign}{format_amount(transaction.amount)}**")
        if cols[3].button("🗑️", key=f"delete_{transaction.id}"):
            if run_mutation(session.delete_transaction(transaction.id), "✅ Deleted"):
                st.rerun()

        with st.expander("Edit", expanded=False):
            with st.form(f"edit_{transaction.id}"):
                new_date = st.date_input("Date", value=transaction.date)
                new_type = st.radio(
                    "Type",
                    options=list(TransactionType),
                    index=list(TransactionType).index(transaction.type),
                    format_func=lambda t: t.value.title(),
                    horizontal=True,
                )
                new_amount = st.number_input(
                    "Amount", min_value=0.0, step=1000.0, value=float(transaction.amount)
                )
                new_category = st.selectbox(
                    "Category",
                    options=list(TransactionCategory),
                    index=list(TransactionCategory).index(transaction.category),
                    format_func=category_label,
                )
                new_description = st.text_input("Description", value=transaction.description)
                if st.form_submit_button("Save"):
                    updated = run_mutation(
                        session.update_transaction(
                            transaction.id,
                            new_date,
                            new_amount,
                            new_type,
                            new_category,
                            new_description,
                        ),
                        "✅ Transaction updated",
                    )
                    if updated:
                        st.rerun()


def render_ai_page(session: LedgerSession):
    """Render AI report, quick tip and advisor chat."""
    st.title("🤖 AI Analysis")

    if st.button("💡 Quick tip"):
        with st.spinner("Thinking..."):
            tip = run_async(session.quick_tip())
        st.info(tip or "The AI advisor is not configured.")

    if st.button("📝 Generate detailed report", type="primary"):
        with st.spinner("Analyzing your finances..."):
            st.session_state.pending_insight = run_async(session.generate_insight())

    insight = st.session_state.get("pending_insight")
    if insight is not None:
        st.markdown("### Spending analysis")
        st.write(insight.analysis)
        if insight.asset_analysis:
            st.markdown("### Portfolio")
            st.write(insight.asset_analysis)
        if insight.category_breakdown:
            st.markdown("### Categories")
            st.write(insight.category_breakdown)
        if insight.suggestions:
            st.markdown("### Suggestions")
            for suggestion in insight.suggestions:
                st.markdown(f"- {suggestion}")
        if insight.saving_goal_advice:
            st.markdown("### Saving goals")
            st.write(insight.saving_goal_advice)
        if insight.tips:
            st.caption(insight.tips)
        if st.button("💾 Save this report"):
            if run_mutation(session.save_insight(insight), "✅ Report saved"):
                st.session_state.pending_insight = None

    if session.insights:
        with st.expander(f"📚 Saved reports ({len(session.insights)})"):
            for saved in session.insights:
                st.markdown(f"**{saved.created_at:%Y-%m-%d %H:%M}**: {saved.analysis}")

    st.markdown("---")
    st.markdown("### 💬 Ask the advisor")
    history: list[ChatTurn] = st.session_state.setdefault("chat_history", [])
    for turn in history:
        with st.chat_message("user" if turn.role == "user" else "assistant"):
            st.markdown(turn.text)

    message = st.chat_input("Ask about your spending or portfolio")
    if message:
        reply = run_async(session.chat(message, history))
        history.append(ChatTurn(role="user", text=message))
        history.append(ChatTurn(role="model", text=reply))
        st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from src.config import validate_all_settings

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
        ("Market data (Prices)", "market_data"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
