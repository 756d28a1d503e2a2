"""
inventory_api_client.py

A small client for scripts and bots that talk to a running Inventory Tracker API.

What it provides:
- JWT login (username or email) + authenticated requests, with one re-login on 401/403
- Helpers for warehouses, items, stock movements, CSV import/export and reports

Environment variables expected:
- INVENTORY_API_URL: e.g. "https://your-domain.com/api"
- INVENTORY_API_USERNAME: username or email of an existing user
- INVENTORY_API_PASSWORD: that user's password

Optional:
- INVENTORY_API_TOKEN: if you want to pre-seed a token (otherwise we login)

Dependencies:
- requests (pip install requests)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class InventoryApiClient:
    base_url: str
    username: str
    password: str
    token: Optional[str] = None
    timeout: int = 60

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def login(self) -> str:
        """
        FastAPI-Users JWT login endpoint.
        The backend uses: POST /auth/jwt/login with form fields: username, password
        """
        resp = requests.post(
            self._url("/auth/jwt/login"),
            data={"username": self.username, "password": self.password},
            headers={"Accept": "application/json"},
            timeout=30,
        )
        if resp.status_code >= 400:
            raise ApiError(f"Login failed ({resp.status_code}): {resp.text}", resp.status_code)
        data = resp.json()
        token = data.get("access_token")
        if not token:
            raise ApiError(f"Login response missing access_token: {data}")
        self.token = token
        return token

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        if not self.token:
            self.login()

        resp = requests.request(method, self._url(path), headers=self._headers(), timeout=self.timeout, **kwargs)

        # If token expired, retry once with a fresh login.
        if resp.status_code in (401, 403):
            self.login()
            resp = requests.request(method, self._url(path), headers=self._headers(), timeout=self.timeout, **kwargs)

        if resp.status_code >= 400:
            raise ApiError(f"{method} {path} failed ({resp.status_code}): {resp.text}", resp.status_code)
        return resp

    def _request(self, method: str, path: str, *, json: Any = None, params: Dict[str, Any] | None = None) -> Any:
        resp = self._send(method, path, json=json, params=params)
        if resp.status_code == 204:
            return None
        return resp.json()

    # ----------------------------
    # Warehouses
    # ----------------------------

    def list_warehouses(self) -> Any:
        return self._request("GET", "/warehouses/")

    def select_warehouse(self, warehouse_id: Optional[str]) -> Any:
        """warehouse_id: a warehouse id, "all", or None to clear."""
        return self._request("PUT", "/warehouses/selected", json={"warehouse_id": warehouse_id})

    # ----------------------------
    # Inventory helpers
    # ----------------------------

    def list_items(self, *, warehouse_id: Optional[str] = None, q: Optional[str] = None) -> Any:
        params = {k: v for k, v in {"warehouse_id": warehouse_id, "q": q}.items() if v}
        return self._request("GET", "/inventory/items", params=params)

    def create_item(
        self,
        *,
        code: str,
        name: str,
        quantity: int,
        price: float,
        warehouse_id: Optional[str] = None,
        entry_date: Optional[str] = None,  # "YYYY-MM-DD"
    ) -> Any:
        payload: Dict[str, Any] = {"code": code, "name": name, "quantity": quantity, "price": price}
        if entry_date:
            payload["entry_date"] = entry_date
        params = {"warehouse_id": warehouse_id} if warehouse_id else None
        return self._request("POST", "/inventory/items", json=payload, params=params)

    def record_movement(
        self,
        *,
        item_id: str,
        movement_type: str,  # "ENTRY" | "EXIT"
        quantity: int,
        movement_date: Optional[str] = None,  # "YYYY-MM-DD"
        description: Optional[str] = None,
    ) -> Any:
        """
        Calls: POST /inventory/items/{item_id}/movements

        The backend answers 409 when an EXIT asks for more than is available.
        """
        payload: Dict[str, Any] = {"movement_type": movement_type, "quantity": quantity}
        if movement_date:
            payload["movement_date"] = movement_date
        if description:
            payload["description"] = description
        return self._request("POST", f"/inventory/items/{item_id}/movements", json=payload)

    def summary(self, *, warehouse_id: Optional[str] = None) -> Any:
        params = {"warehouse_id": warehouse_id} if warehouse_id else None
        return self._request("GET", "/inventory/summary", params=params)

    # ----------------------------
    # CSV + reports
    # ----------------------------

    def import_csv(self, path: str, *, warehouse_id: Optional[str] = None) -> Any:
        params = {"warehouse_id": warehouse_id} if warehouse_id else None
        # Bytes, not the handle: a retry after re-login must send the whole file again
        with open(path, "rb") as fh:
            content = fh.read()
        resp = self._send(
            "POST",
            "/inventory/import",
            files={"file": (os.path.basename(path), content, "text/csv")},
            params=params,
        )
        return resp.json()

    def download(self, path: str, dest: str, *, warehouse_id: Optional[str] = None) -> str:
        """Save a file endpoint (e.g. /reports/pdf, /inventory/export) to dest."""
        params = {"warehouse_id": warehouse_id} if warehouse_id else None
        resp = self._send("GET", path, params=params)
        with open(dest, "wb") as fh:
            fh.write(resp.content)
        return dest


def make_client_from_env() -> InventoryApiClient:
    base_url = os.getenv("INVENTORY_API_URL", "").strip()
    username = os.getenv("INVENTORY_API_USERNAME", "").strip()
    password = os.getenv("INVENTORY_API_PASSWORD", "").strip()
    token = os.getenv("INVENTORY_API_TOKEN", "").strip() or None

    if not base_url:
        raise RuntimeError("Missing INVENTORY_API_URL")
    if not username:
        raise RuntimeError("Missing INVENTORY_API_USERNAME")
    if not password:
        raise RuntimeError("Missing INVENTORY_API_PASSWORD")

    return InventoryApiClient(base_url=base_url, username=username, password=password, token=token)


if __name__ == "__main__":
    client = make_client_from_env()

    # Example: record an exit of 2 units
    # client.record_movement(item_id="00000000-0000-0000-0000-000000000000", movement_type="EXIT", quantity=2)

    # Example: download today's PDF report
    # client.download("/reports/pdf", "inventory_report.pdf")

    print("OK: client configured. Uncomment examples to run.")
