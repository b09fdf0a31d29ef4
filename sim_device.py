"""ESP32-like simulator for the devicehub HTTP API.

Behaves like the firmware on the board:
1. Polls `GET /device-state/{id}` and mirrors the LED value locally.
2. Posts a temperature/humidity reading to `POST /sensor-data` at a fixed interval.
3. (Optional) Flips its own LED through `POST /device-state` to exercise the app path.

Requires: requests
"""

import os, time, random, threading, sys
import requests

# --- CONFIG ---
API_BASE = os.getenv('DEVICEHUB_URL', 'http://localhost:3000')
DEVICE_ID = os.getenv('DEVICE_ID', 'esp32-01')
SENSOR_INTERVAL = 5          # seconds
STATE_POLL_INTERVAL = 2      # seconds
TOGGLE_LED_EVERY = 0         # >0: toggle the LED remotely every N readings

LED_STATE = False
STOP = False

# --- HTTP helpers ---
def http_post(path, json_body):
    url = API_BASE + path
    try:
        r = requests.post(url, json=json_body, timeout=5)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        print('[HTTP] POST error', path, e)
        return None

def http_get(path, params=None):
    url = API_BASE + path
    try:
        r = requests.get(url, params=params, timeout=5)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        print('[HTTP] GET error', path, e)
        return None

def read_sensor():
    return {
        'temperature': round(22 + random.random() * 4, 2),
        'humidity': round(50 + random.random() * 15, 1),
    }

def apply_state(state):
    """Mirror the server-side LED; a null state means nobody set it yet."""
    global LED_STATE
    if not state:
        return
    led = bool(state.get('led'))
    if led != LED_STATE:
        LED_STATE = led
        print(f'[LED] now {"ON" if LED_STATE else "OFF"} (updatedAt={state.get("updatedAt")})')

def send_reading():
    body = {'deviceId': DEVICE_ID, **read_sensor()}
    if http_post('/sensor-data', body):
        print('[SENS] sent', body)

def toggle_led():
    state = http_post('/device-state', {'deviceId': DEVICE_ID, 'led': not LED_STATE})
    apply_state(state)

def sensor_loop():
    i = 0
    while not STOP:
        send_reading()
        i += 1
        if TOGGLE_LED_EVERY and i % TOGGLE_LED_EVERY == 0:
            toggle_led()
        time.sleep(SENSOR_INTERVAL)

def state_poll_loop():
    while not STOP:
        apply_state(http_get(f'/device-state/{DEVICE_ID}'))
        time.sleep(STATE_POLL_INTERVAL)

def main():
    global STOP
    if http_get('/health') is None:
        print('[MAIN] server not reachable at', API_BASE)
        sys.exit(1)
    threading.Thread(target=sensor_loop, daemon=True).start()
    threading.Thread(target=state_poll_loop, daemon=True).start()
    print(f'[MAIN] simulator {DEVICE_ID} running against {API_BASE}. Press Ctrl+C to stop.')
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print('[MAIN] stopping...')
    finally:
        STOP = True
        latest = http_get(f'/sensor-data/{DEVICE_ID}/latest')
        if latest:
            print('[MAIN] last stored reading', latest)

if __name__ == '__main__':
    main()
