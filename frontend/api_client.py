import os
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

API_BASE = os.getenv("API_BASE_URL", "http://localhost:8000")
TIMEOUT = 10

Result = tuple[bool, str, Optional[dict | list]]


def _error_detail(resp: requests.Response) -> str:
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        return resp.text
    if isinstance(detail, list):
        # FastAPI validation errors: [{"loc": [...], "msg": "..."}]
        return "; ".join(str(d.get("msg", d)) for d in detail)
    return str(detail)


def _request(method: str, path: str, ok_message: str = "", **kwargs) -> Result:
    """Send one request to the API. Returns (success, message, data)."""
    try:
        resp = requests.request(method, f"{API_BASE}{path}", timeout=TIMEOUT, **kwargs)
    except requests.exceptions.ConnectionError:
        return False, "Could not connect to the API. Please try again.", None
    except requests.exceptions.Timeout:
        return False, "Request timed out. Please refresh before retrying.", None

    if resp.status_code in (200, 201):
        return True, ok_message, resp.json()
    if resp.status_code == 204:
        return True, ok_message, None
    return False, f"API error {resp.status_code}: {_error_detail(resp)}", None


def fetch_categories() -> list[dict]:
    """GET /categories. An empty list when the API is unreachable."""
    ok, _, data = _request("GET", "/categories")
    return data if ok and data else []


def create_category(name: str, color: Optional[str] = None, icon: Optional[str] = None) -> Result:
    payload = {"name": name, "color": color or None, "icon": icon or None}
    return _request("POST", "/categories", "Category added.", json=payload)


def fetch_expenses(
    category_id: Optional[str] = None,
    start_date=None,
    end_date=None,
    sort_desc: bool = True,
) -> Result:
    """GET /expenses with optional filters."""
    params = {"sort_date_desc": str(sort_desc).lower()}
    if category_id:
        params["category"] = category_id
    if start_date:
        params["start_date"] = str(start_date)
    if end_date:
        params["end_date"] = str(end_date)
    return _request("GET", "/expenses", params=params)


def post_expense(payload: dict) -> Result:
    return _request("POST", "/expenses", "Expense saved successfully!", json=payload)


def put_expense(expense_id: str, payload: dict) -> Result:
    return _request("PUT", f"/expenses/{expense_id}", "Expense updated.", json=payload)


def delete_expense(expense_id: str) -> Result:
    return _request("DELETE", f"/expenses/{expense_id}", "Expense deleted.")


def fetch_summary(start_date=None, end_date=None, period: str = "day") -> Result:
    params = {"period": period}
    if start_date:
        params["start_date"] = str(start_date)
    if end_date:
        params["end_date"] = str(end_date)
    return _request("GET", "/expenses/summary", params=params)


def format_currency(amount) -> str:
    try:
        return f"{Decimal(str(amount)):,.2f}"
    except (InvalidOperation, TypeError):
        return f"{amount}"
