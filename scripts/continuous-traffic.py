#!/usr/bin/env python3
"""
Keep a steady stream of shoppers hitting the store service.

Runs generate-traffic.py with an effectively unbounded session length and
restarts it if it exits on its own (for example while the API is being
redeployed). Stop with Ctrl+C.

Environment:
    STORE_URL          API base URL (default: http://localhost:8000)
    TRAFFIC_USERS      Concurrent shoppers (default: 50)
    STORE_ROOT_USER    Admin used to seed an empty catalog (default: root)
    STORE_ROOT_PASS    Password for that admin; seeding is skipped when unset
"""
import os
import signal
import subprocess
import sys
import time

RESTART_DELAY_SECONDS = 5

process = None
stopping = False


def build_command(script_path):
    command = [
        sys.executable, script_path,
        "--url", os.environ.get("STORE_URL", "http://localhost:8000"),
        "--users", os.environ.get("TRAFFIC_USERS", "50"),
        "--duration", "999999",
    ]
    admin_pass = os.environ.get("STORE_ROOT_PASS", "")
    if admin_pass:
        command += [
            "--admin-user", os.environ.get("STORE_ROOT_USER", "root"),
            "--admin-pass", admin_pass,
        ]
    return command


def stop(sig, frame):
    global stopping
    stopping = True
    print("\n\nStopping shopper traffic...")
    if process and process.poll() is None:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
    sys.exit(0)


signal.signal(signal.SIGINT, stop)
signal.signal(signal.SIGTERM, stop)

if __name__ == "__main__":
    script_dir = os.path.dirname(os.path.abspath(__file__))
    command = build_command(os.path.join(script_dir, "generate-traffic.py"))

    print(f"Driving {os.environ.get('TRAFFIC_USERS', '50')} concurrent shoppers against the store")
    print("Press Ctrl+C to stop\n")

    while not stopping:
        process = subprocess.Popen(command, cwd=script_dir, stdout=sys.stdout, stderr=sys.stderr)
        code = process.wait()
        if stopping:
            break
        print(f"Traffic generator exited with code {code}, restarting in {RESTART_DELAY_SECONDS}s")
        time.sleep(RESTART_DELAY_SECONDS)
