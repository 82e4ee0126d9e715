import requests
import time

BASE_URL = "http://localhost:8001/api/v1"

PATIENT_ID = 42

def send(value, record_type, timestamp):
    payload = {
        "patient_id": PATIENT_ID,
        "value": value,
        "record_type": record_type,
        "timestamp": timestamp,
    }
    return requests.post(f"{BASE_URL}/records", json=payload, timeout=5)

def trigger_hypoxemia():
    now = int(time.time() * 1000)
    try:
        print(f"Sending hypotensive hypoxemia readings to {BASE_URL}...")
        for value, record_type, offset in [(85.0, "SystolicPressure", 60_000), (89.0, "Saturation", 30_000)]:
            response = send(value, record_type, now - offset)
            if response.status_code != 200:
                print(f"❌ Failed! Status: {response.status_code}, Response: {response.text}")
                return

        response = requests.get(f"{BASE_URL}/patients/{PATIENT_ID}/alerts", timeout=5)
        conditions = [a["condition"] for a in response.json()]
        if "Hypotensive Hypoxemia Alert" in conditions:
            print(f"✅ Hypoxemia detected! Alerts: {conditions}")
        else:
            print(f"❌ Hypoxemia alert missing. Alerts: {conditions}")

    except requests.exceptions.ConnectionError:
        print("❌ Connection Error! Is the Ingestion Service running?")

if __name__ == "__main__":
    trigger_hypoxemia()
