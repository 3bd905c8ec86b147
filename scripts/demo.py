from __future__ import annotations

import os
import time

import requests
from rich import print

BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")

def _headers(jwt: str | None) -> dict[str, str]:
    headers = {"content-type": "application/json"}
    if jwt:
        headers["authorization"] = f"bearer {jwt}"
    return headers

def post(path: str, *, jwt: str | None = None, json: dict | None = None) -> requests.Response:
    return requests.post(f"{BASE}{path}", headers=_headers(jwt), json=json, timeout=10)

def patch(path: str, *, jwt: str, json: dict) -> requests.Response:
    return requests.patch(f"{BASE}{path}", headers=_headers(jwt), json=json, timeout=10)

def delete(path: str, *, jwt: str) -> requests.Response:
    return requests.delete(f"{BASE}{path}", headers=_headers(jwt), timeout=10)

def get(path: str, *, jwt: str | None = None) -> requests.Response:
    return requests.get(f"{BASE}{path}", headers=_headers(jwt), timeout=10)

def login(email: str) -> str:
    r = post("/auth/request-link", json={"email": email})
    r.raise_for_status()
    token = r.json()["token"]

    r2 = post("/auth/redeem", json={"token": token})
    r2.raise_for_status()
    return r2.json()["access_token"]

def wait_ready(timeout_s: float = 30.0) -> None:
    deadline = time.time() + timeout_s
    last_err: Exception | None = None

    while time.time() < deadline:
        try:
            r = get("/ready")
            if r.status_code == 200:
                return
        except requests.RequestException as e:
            last_err = e
        time.sleep(0.5)

    if last_err:
        raise RuntimeError(f"api not ready after {timeout_s}s (last error: {last_err})")
    raise RuntimeError(f"api not ready after {timeout_s}s")

def show(label: str, r: requests.Response) -> None:
    colour = "green" if r.ok else "red"
    detail = "" if r.ok else f" ({r.json().get('detail')})"
    print(f"  {label}: [{colour}]{r.status_code}[/{colour}]{detail}")

def main() -> None:
    # expects scripts/seed.py to have run so the manager/admin accounts exist
    print("[bold]demo: one todo, every role tries to change it[/bold]")

    wait_ready()
    print("[green]ready ok[/green]")

    jwts = {role: login(f"{role}@example.com") for role in ("user", "manager", "admin")}
    outsider = login(f"outsider+{int(time.time())}@example.com")

    r = post("/todos", jwt=jwts["user"], json={"title": "demo todo", "content": "owned by user"})
    r.raise_for_status()
    todo_id = r.json()["id"]
    print("created todo:", todo_id)

    for role, jwt in (("outsider", outsider), ("manager", jwts["manager"]), ("admin", jwts["admin"])):
        print(f"[bold]{role}[/bold]")
        show("list", get("/todos", jwt=jwt))
        show("rename", patch(f"/todos/{todo_id}", jwt=jwt, json={"title": f"renamed by {role}"}))
        show("mark done", patch(f"/todos/{todo_id}", jwt=jwt, json={"isDone": True}))

    print("[bold]manager then admin delete[/bold]")
    show("manager delete", delete(f"/todos/{todo_id}", jwt=jwts["manager"]))
    show("admin delete", delete(f"/todos/{todo_id}", jwt=jwts["admin"]))
    print("[bold green]demo complete[/bold green]")

if __name__ == "__main__":
    main()
