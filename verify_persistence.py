import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/api"
APP = "treasury_backend.app.main:app"


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def start_server(env=None):
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", APP, "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, **(env or {})},
    )


def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server({"DB_ECHO": "True"})  # Enable echo to see SQL

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise RuntimeError("Server start failed")

        # 2. Record Payment
        print("\n--- [Step 2] Recording Payment (Persistence Test) ---")
        payload = {
            "partyName": "Persistence Check Supplier",
            "amount": "500",
            "paymentDate": "2025-01-15",
            "includesVAT": False,
        }
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/payments", json=payload)
        if resp.status_code != 201:
            print(f"❌ Payment Creation Failed: {resp.status_code} {resp.text}")
            raise RuntimeError("Payment creation failed")

        payment = resp.json()
        print("✅ Payment Recorded Successfully")
        print(payment)

    finally:
        print("\n--- [Step 3] Stopping Server ---")
        proc.send_signal(signal.SIGTERM)
        proc.wait()

    time.sleep(2)  # Wait for port release

    # 3. Restart Server
    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise RuntimeError("Server restart failed")

        # 4. Fetch
        print("\n--- [Step 5] Fetching Payment (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/payments/{payment['id']}")

        if resp.status_code == 200 and resp.json()["totalAmount"] == payment["totalAmount"]:
            print("✅ Payment Persisted!")
            print(resp.json())
        else:
            print(f"❌ Fetch Failed (Persistence Issue?): {resp.status_code} {resp.text}")
            raise RuntimeError("Payment missing after restart")

    finally:
        print("\n--- [Step 6] Stopping Server ---")
        proc2.send_signal(signal.SIGTERM)
        proc2.wait()


if __name__ == "__main__":
    run_verification()
