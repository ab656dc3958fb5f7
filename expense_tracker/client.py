"""
HTTP client for the expense tracker API.

The bearer token lives on the client instance, so two clients built on the
same transport act as two independent sessions.
"""
from typing import Any, Dict, List, Optional

import httpx


class ApiError(Exception):
    """Raised for any non-2xx response"""

    def __init__(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body
        message = body.get("message") if isinstance(body, dict) else body
        super().__init__(f"{status_code}: {message}")


class ExpenseTrackerClient:
    def __init__(self, http: httpx.Client, token: Optional[str] = None, prefix: str = "/api"):
        self.http = http
        self.token = token
        self.prefix = prefix.rstrip("/")

    def _request(self, method: str, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        response = self.http.request(method, self.prefix + path, json=json, params=params, headers=headers)
        if response.status_code == 204:
            return None

        try:
            body = response.json()
        except ValueError:
            body = response.text
        if response.is_error:
            raise ApiError(response.status_code, body)
        return body

    # Auth

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/users", json={"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> str:
        """Authenticate and keep the token for subsequent calls"""
        response = self._request("POST", "/sessions", json={"email": email, "password": password})
        self.token = response["token"]
        return self.token

    def logout(self):
        self.token = None

    def is_authenticated(self) -> bool:
        return self.token is not None

    def profile(self) -> Dict[str, Any]:
        return self._request("GET", "/profile")

    # Categories

    def list_categories(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/categories")

    def get_category(self, category_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/categories/{category_id}")

    def create_category(self, name: str, **fields) -> Dict[str, Any]:
        return self._request("POST", "/categories", json={"name": name, **fields})

    def update_category(self, category_id: int, **fields) -> Dict[str, Any]:
        return self._request("PUT", f"/categories/{category_id}", json=fields)

    def delete_category(self, category_id: int):
        self._request("DELETE", f"/categories/{category_id}")

    # Expenses

    def list_expenses(self, **filters) -> Dict[str, Any]:
        """Filters use the API's names: page, perPage, startDate, endDate, categoryId, ..."""
        return self._request("GET", "/expenses", params=filters)

    def get_expense(self, expense_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/expenses/{expense_id}")

    def create_expense(self, amount: float, **fields) -> Dict[str, Any]:
        return self._request("POST", "/expenses", json={"amount": amount, **fields})

    def update_expense(self, expense_id: int, **fields) -> Dict[str, Any]:
        return self._request("PUT", f"/expenses/{expense_id}", json=fields)

    def delete_expense(self, expense_id: int):
        self._request("DELETE", f"/expenses/{expense_id}")

    def summary(self) -> Dict[str, Any]:
        return self._request("GET", "/expenses/summary")

    def total(self) -> float:
        return self._request("GET", "/expenses/total")["total"]

    # Tags

    def list_tags(self, q: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/tags", params={"q": q})

    def create_tag(self, name: str, color: Optional[str] = None) -> Dict[str, Any]:
        payload = {"name": name}
        if color is not None:
            payload["color"] = color
        return self._request("POST", "/tags", json=payload)

    def delete_tag(self, tag_id: int):
        self._request("DELETE", f"/tags/{tag_id}")
