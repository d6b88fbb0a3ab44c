import streamlit as st
import pandas as pd
from datetime import date
from decimal import Decimal, InvalidOperation

import api_client as api
from api_client import format_currency

# ── Config ────────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="centered",
)

PAYMENT_METHODS = ["cash", "credit card", "debit card", "bank transfer", "e-wallet"]
PERIODS = {"Daily": "day", "Monthly": "month", "Yearly": "year"}


# ── Helpers ───────────────────────────────────────────────────────────────────

def category_label(cat: dict) -> str:
    return f"{cat.get('icon') or ''} {cat['name']}".strip()


def validate_expense_form(amount_str: str, category_id) -> tuple[list[str], Decimal | None]:
    errors = []
    amount_val = None
    try:
        amount_val = Decimal(amount_str.strip())
        if amount_val <= 0:
            errors.append("Amount must be greater than zero.")
    except (InvalidOperation, AttributeError):
        errors.append("Amount must be a valid positive number (e.g. 250 or 99.99).")
    if not category_id:
        errors.append("Category is required.")
    return errors, amount_val


def expense_form(key: str, categories: list[dict], expense: dict | None = None):
    """Renders an add/edit form. Returns the payload when submitted and valid."""
    expense = expense or {}
    ids = [c["id"] for c in categories]
    labels = {c["id"]: category_label(c) for c in categories}
    current_cat = expense.get("category_id")
    method = expense.get("payment_method") or PAYMENT_METHODS[0]
    methods = PAYMENT_METHODS if method in PAYMENT_METHODS else PAYMENT_METHODS + [method]

    with st.form(key, clear_on_submit=expense == {}):
        col1, col2 = st.columns(2)
        with col1:
            amount_str = st.text_input(
                "Amount *",
                value=str(expense.get("amount", "")),
                placeholder="e.g. 499.00",
                help="Must be a positive number.",
            )
        with col2:
            category_id = st.selectbox(
                "Category *",
                options=ids,
                index=ids.index(current_cat) if current_cat in ids else 0,
                format_func=lambda cid: labels.get(cid, cid),
            )

        description = st.text_area(
            "Description",
            value=expense.get("description") or "",
            placeholder="Optional: what was this expense for?",
            max_chars=1000,
            height=80,
        )

        col3, col4 = st.columns(2)
        with col3:
            expense_date = st.date_input(
                "Date *",
                value=date.fromisoformat(expense["expense_date"]) if expense.get("expense_date") else date.today(),
            )
        with col4:
            payment_method = st.selectbox("Payment method", options=methods, index=methods.index(method))

        submitted = st.form_submit_button("Save Expense", type="primary", use_container_width=True)

    if not submitted:
        return None

    errors, amount_val = validate_expense_form(amount_str, category_id)
    if errors:
        for err in errors:
            st.error(err)
        return None

    return {
        "amount": str(amount_val),
        "category_id": category_id,
        "description": description.strip() or None,
        "expense_date": str(expense_date),
        "payment_method": payment_method,
    }


# ── Session state init ─────────────────────────────────────────────────────────
if "flash" not in st.session_state:
    st.session_state.flash = None  # (success: bool, message: str)

if "editing_id" not in st.session_state:
    st.session_state.editing_id = None

if "confirm_delete_id" not in st.session_state:
    st.session_state.confirm_delete_id = None


def flash(ok: bool, message: str):
    st.session_state.flash = (ok, message)
    st.rerun()


# ── Page ───────────────────────────────────────────────────────────────────────
st.title("💸 Expense Tracker")
st.caption("Track your personal expenses by category.")

if st.session_state.flash is not None:
    ok, msg = st.session_state.flash
    (st.success if ok else st.error)(msg)
    st.session_state.flash = None

categories = api.fetch_categories()
if not categories:
    st.error("⚠️ Could not load categories. Is the API running?")
    st.stop()

tab_list, tab_summary, tab_categories = st.tabs(["📋 Expenses", "📊 Summary", "🏷️ Categories"])

# ── Tab 1: Add / list / edit expenses ─────────────────────────────────────────
with tab_list:
    with st.expander("➕ Add New Expense", expanded=False):
        payload = expense_form("add_expense_form", categories)
        if payload is not None:
            with st.spinner("Saving..."):
                ok, message, _ = api.post_expense(payload)
            flash(ok, message)

    col_f1, col_f2, col_f3 = st.columns([2, 1, 1])
    with col_f1:
        filter_options = [""] + [c["id"] for c in categories]
        by_id = {c["id"]: c for c in categories}
        selected_category = st.selectbox(
            "Filter by Category",
            options=filter_options,
            format_func=lambda cid: "All" if not cid else category_label(by_id[cid]),
        )
    with col_f2:
        start_filter = st.date_input("From", value=None)
    with col_f3:
        end_filter = st.date_input("To", value=None)

    with st.spinner("Loading expenses..."):
        ok, err_msg, data = api.fetch_expenses(
            category_id=selected_category or None,
            start_date=start_filter,
            end_date=end_filter,
        )

    if not ok:
        st.error(f"⚠️ {err_msg}")
    elif data:
        expenses = data.get("expenses", [])
        count = data.get("count", 0)

        if count == 0:
            st.info("No expenses found for the selected filter.")
        else:
            st.metric(
                label=f"Total ({count} expense{'s' if count != 1 else ''})",
                value=format_currency(data.get("total", "0.00")),
            )

            for exp in expenses:
                cat = exp.get("category") or {}
                with st.container(border=True):
                    c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
                    with c1:
                        st.markdown(f"**{cat.get('icon') or ''} {cat.get('name', 'Uncategorized')}**")
                        if exp.get("description"):
                            st.caption(exp["description"])
                    with c2:
                        st.markdown(f"**{format_currency(exp['amount'])}**")
                        st.caption(exp.get("payment_method", ""))
                    with c3:
                        st.caption(f"📅 {exp['expense_date']}")
                    with c4:
                        if st.button("✏️", key=f"edit_{exp['id']}"):
                            st.session_state.editing_id = exp["id"]
                            st.rerun()
                        if st.session_state.confirm_delete_id != exp["id"]:
                            if st.button("🗑️", key=f"delete_{exp['id']}"):
                                st.session_state.confirm_delete_id = exp["id"]
                                st.rerun()

                    if st.session_state.confirm_delete_id == exp["id"]:
                        st.warning("Delete this expense? This cannot be undone.")
                        d1, d2 = st.columns(2)
                        with d1:
                            if st.button("Confirm delete", key=f"confirm_delete_{exp['id']}", type="primary"):
                                st.session_state.confirm_delete_id = None
                                ok, message, _ = api.delete_expense(exp["id"])
                                flash(ok, message)
                        with d2:
                            if st.button("Keep", key=f"keep_{exp['id']}"):
                                st.session_state.confirm_delete_id = None
                                st.rerun()

                    if st.session_state.editing_id == exp["id"]:
                        payload = expense_form(f"edit_{exp['id']}_form", categories, exp)
                        if payload is not None:
                            ok, message, _ = api.put_expense(exp["id"], payload)
                            st.session_state.editing_id = None
                            flash(ok, message)
                        if st.button("Cancel", key=f"cancel_{exp['id']}"):
                            st.session_state.editing_id = None
                            st.rerun()

# ── Tab 2: Summary ────────────────────────────────────────────────────────────
with tab_summary:
    col_s1, col_s2, col_s3 = st.columns(3)
    with col_s1:
        start_date = st.date_input("Start date", value=None, key="summary_start", help="Defaults to the first day of this month")
    with col_s2:
        end_date = st.date_input("End date", value=None, key="summary_end", help="Defaults to the last day of this month")
    with col_s3:
        period_label = st.selectbox("Group by", options=list(PERIODS))

    ok, err_msg, summary = api.fetch_summary(start_date, end_date, PERIODS[period_label])
    if not ok:
        st.error(f"⚠️ {err_msg}")
    elif summary and summary.get("count", 0) == 0:
        st.info(f"No expenses between {summary['start_date']} and {summary['end_date']}.")
    elif summary:
        # The server fills in whichever bound was left empty.
        st.caption(f"📅 {summary['start_date']} → {summary['end_date']}")
        stats = summary["stats"]
        m1, m2, m3 = st.columns(3)
        m1.metric("Total", format_currency(summary["total"]))
        m2.metric("Daily average", format_currency(stats["daily_average"]))
        if stats.get("busiest_day"):
            m3.metric("Busiest day", stats["busiest_day"]["key"], format_currency(stats["busiest_day"]["amount"]))
        if stats.get("top_category"):
            top = stats["top_category"]
            st.caption(f"Top category: {top['icon']} {top['name']} ({top['percentage']}%)")

        buckets = pd.DataFrame(
            [{"Period": b["key"], "Amount": float(b["amount"])} for b in summary["buckets"]]
        ).set_index("Period")
        st.bar_chart(buckets)

        st.table([
            {
                "Category": f"{b['icon']} {b['name']}",
                "Count": b["count"],
                "Total": format_currency(b["amount"]),
                "Share": f"{b['percentage']}%",
            }
            for b in summary["breakdown"]
        ])

# ── Tab 3: Categories ─────────────────────────────────────────────────────────
with tab_categories:
    st.table([{"Icon": c.get("icon") or "", "Name": c["name"], "Color": c["color"]} for c in categories])

    with st.form("add_category_form", clear_on_submit=True):
        name = st.text_input("Name *", max_chars=100)
        col_c1, col_c2 = st.columns(2)
        with col_c1:
            color = st.color_picker("Color", value="#C7CEEA")
        with col_c2:
            icon = st.text_input("Icon", placeholder="📌", max_chars=16)
        if st.form_submit_button("Add Category"):
            if not name.strip():
                st.error("Category name is required.")
            else:
                ok, message, _ = api.create_category(name.strip(), color.upper(), icon.strip())
                flash(ok, message)
