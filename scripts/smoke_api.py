"""
Smoke checks for the PharmaChain API endpoints.
Run the API server first: python -m pharmachain.api.app
Then run this: python scripts/smoke_api.py
"""

import json
import os

import requests

BASE_URL = os.getenv("PHARMACHAIN_URL", "http://localhost:8000")


def banner(title):
    print("\n" + "=" * 50)
    print(f"CHECK: {title}")
    print("=" * 50)


def report(response, show_body=True):
    print(f"Status Code: {response.status_code}")
    if show_body:
        print(f"Response: {json.dumps(response.json(), indent=2)[:800]}")


def check_health():
    banner("Health Check")
    response = requests.get(f"{BASE_URL}/health")
    report(response)
    return response.status_code == 200


def check_login_invalid():
    banner("Login with Invalid Credentials")
    response = requests.post(
        f"{BASE_URL}/api/auth/login",
        json={"email": "nobody@caritas.org", "password": "wrong"},
    )
    report(response)
    return response.status_code == 401


def login(email, password):
    banner(f"Login as {email}")
    response = requests.post(
        f"{BASE_URL}/api/auth/login",
        json={"email": email, "password": password},
    )
    report(response)
    if response.status_code == 200:
        return response.json().get("token")
    return None


def check_without_token():
    banner("Inventory Without Token")
    response = requests.get(f"{BASE_URL}/api/inventory")
    report(response)
    return response.status_code == 401


def check_get(token, path, expected=200):
    banner(f"GET {path}")
    response = requests.get(f"{BASE_URL}{path}", headers={"Authorization": f"Bearer {token}"})
    report(response, show_body=response.headers.get("Content-Type", "").startswith("application/json"))
    return response.status_code == expected


def check_create_distribution(token):
    banner("Create Distribution")
    response = requests.post(
        f"{BASE_URL}/api/distributions",
        headers={"Authorization": f"Bearer {token}"},
        json={"destination": "Abia State", "items": [{"name": "Paracetamol 500mg", "quantity": 250}]},
    )
    report(response)
    return response.status_code == 201 and response.json()["item"]["status"] == "pending"


def check_logout(token):
    banner("Logout")
    response = requests.post(
        f"{BASE_URL}/api/auth/logout",
        headers={"Authorization": f"Bearer {token}"},
    )
    report(response)
    return response.status_code == 200


def main():
    print("=" * 50)
    print("PharmaChain API Smoke Checks")
    print("=" * 50)
    print(f"Base URL: {BASE_URL}")
    print("Make sure the API server is running!")

    results = {}
    try:
        results["Health Check"] = check_health()
        results["Login Invalid"] = check_login_invalid()
        results["No Token"] = check_without_token()

        admin = login("admin@caritas.org", "admin123")
        results["Login Admin"] = admin is not None
        if admin:
            results["Screens"] = check_get(admin, "/api/screens")
            results["Inventory"] = check_get(admin, "/api/inventory")
            results["Create Distribution"] = check_create_distribution(admin)
            results["Tracking"] = check_get(admin, "/api/distributions/DIST-0002/tracking")
            results["Export"] = check_get(admin, "/api/reports/inventory/export")
            results["Logout Admin"] = check_logout(admin)

        pharmacist = login("pharm@caritas.org", "pharm123")
        results["Login Pharmacist"] = pharmacist is not None
        if pharmacist:
            results["Dispensing"] = check_get(pharmacist, "/api/dispensing")
            results["Settings Denied"] = check_get(pharmacist, "/api/users", expected=403)
            results["Logout Pharmacist"] = check_logout(pharmacist)
    except requests.RequestException as e:
        print(f"\n\nERROR: {e}")

    print("\n" + "=" * 50)
    print("SUMMARY")
    print("=" * 50)
    passed = sum(1 for v in results.values() if v)
    for name, ok in results.items():
        print(f"{'✓ PASS' if ok else '✗ FAIL'}: {name}")
    print(f"\nTotal: {passed}/{len(results)} checks passed")
    print("=" * 50)


if __name__ == "__main__":
    main()
