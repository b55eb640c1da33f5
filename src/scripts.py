"""CLI scripts for development and deployment."""
import sys
import time
import uvicorn
import requests


def dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )


def send_event():
    """Send a fake Strava webhook event to a running server."""

    def post_event(aspect_type: str, activity_id: int, athlete_id: int, base_url: str = "http://localhost:8000"):
        """Post a single activity event the way Strava does."""
        url = f"{base_url}/strava/webhook"

        payload = {
            "aspect_type": aspect_type,
            "object_type": "activity",
            "object_id": activity_id,
            "owner_id": athlete_id,
            "event_time": int(time.time()),
            "subscription_id": 1,
            "updates": {}
        }

        print(f"🚀 Sending {aspect_type} event for activity {activity_id} to {url}...")

        try:
            response = requests.post(url, json=payload)

            if response.status_code == 200:
                print(f"\n✅ Event acknowledged: {response.text}")
            else:
                print(f"\n❌ Unexpected response")
                print(f"Status code: {response.status_code}")
                print(f"Response: {response.text}")

        except requests.exceptions.ConnectionError:
            print(f"\n❌ Could not connect to {base_url}")
            print(f"Make sure the server is running (use 'uv run dev')")

    def verify_subscription(verify_token: str, base_url: str = "http://localhost:8000"):
        """Run the subscription handshake against the server."""
        url = f"{base_url}/strava/webhook"
        params = {
            "hub.mode": "subscribe",
            "hub.verify_token": verify_token,
            "hub.challenge": "local-challenge"
        }

        try:
            response = requests.get(url, params=params)
            if response.status_code == 200:
                print(f"\n✅ Handshake ok: {response.json()}")
            else:
                print(f"\n❌ Handshake rejected ({response.status_code})")
        except requests.exceptions.ConnectionError:
            print(f"\n❌ Could not connect to {base_url}")

    if len(sys.argv) < 2:
        print("Usage:")
        print("  send-event <create|update|delete> <activity_id> <athlete_id>")
        print("  send-event verify <verify_token>")
        sys.exit(1)

    command = sys.argv[1]

    if command in ("create", "update", "delete"):
        if len(sys.argv) < 4:
            print("Error: activity_id and athlete_id required")
            sys.exit(1)
        post_event(command, int(sys.argv[2]), int(sys.argv[3]))
    elif command == "verify":
        if len(sys.argv) < 3:
            print("Error: verify_token required")
            sys.exit(1)
        verify_subscription(sys.argv[2])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    dev_server()
