#!/usr/bin/env python3
"""
Traffic generator for the store service.
Signs users up, browses the catalog, fills carts and checks out.
"""

import random
import threading
import time
from datetime import datetime

import requests

API_URL = "http://localhost:8000"

SEED_ITEMS = [
    {"name": "Mechanical keyboard", "desc": "Tactile switches", "price": 89.99},
    {"name": "USB-C hub", "desc": "7 ports", "price": 34.50},
    {"name": "Desk lamp", "desc": "Warm white LED", "price": 22.00},
    {"name": "Notebook", "desc": "Dotted, A5", "price": 6.75},
    {"name": "Monitor arm", "desc": "Gas spring", "price": 119.00},
]

# Weight for actions
ACTION_WEIGHTS = {
    "browse": 0.4,
    "add_to_cart": 0.3,
    "remove_from_cart": 0.05,
    "checkout": 0.15,
    "view_cart": 0.05,
    "view_orders": 0.05,
}


def get_headers(token):
    return {"Authorization": f"Bearer {token}"}


def log(message):
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{timestamp}] {message}")


def seed_catalog(admin_user, admin_pass):
    """Log in as the bootstrap admin and create items if the catalog is empty."""
    try:
        response = requests.get(f"{API_URL}/items", timeout=5)
        if response.status_code == 200 and response.json():
            return

        response = requests.post(
            f"{API_URL}/admin/login",
            json={"user": admin_user, "password": admin_pass},
            timeout=5
        )
        if response.status_code != 200:
            log(f"Admin login failed - {response.status_code}, catalog not seeded")
            return
        token = response.json()["auth_token"]

        # The bootstrap admin is the first admin row
        for item in SEED_ITEMS:
            requests.post(f"{API_URL}/admin/1/items", json=item, headers=get_headers(token), timeout=5)
        log(f"Seeded catalog with {len(SEED_ITEMS)} items")
    except requests.RequestException as e:
        log(f"Failed to seed catalog - {e}")


class Shopper:
    def __init__(self, username, is_authenticated=True):
        self.username = username
        self.password = f"pw-{random.randint(100000, 999999)}"
        self.is_authenticated = is_authenticated
        self.account_id = None
        self.token = None
        self.items = []
        self.cart = set()

    def authenticate(self):
        """Sign up and log in."""
        if not self.is_authenticated:
            log(f"{self.username}: Anonymous shopper (browsing only)")
            return False

        try:
            response = requests.post(
                f"{API_URL}/user/signup",
                json={"user": self.username, "password": self.password},
                timeout=5
            )
            if response.status_code != 200:
                log(f"{self.username}: Signup failed - {response.status_code}")
                return False
            self.account_id = response.json()["id"]

            password = self.password
            # Simulate authentication failures (~1%)
            if random.random() < 0.01:
                password = "wrong_password"

            response = requests.post(
                f"{API_URL}/user/login",
                json={"user": self.username, "password": password},
                timeout=5
            )
            if response.status_code == 200:
                self.token = response.json()["auth_token"]
                log(f"{self.username}: Logged in as account {self.account_id}")
                return True
            log(f"{self.username}: Login failed - {response.status_code}")
        except requests.RequestException as e:
            log(f"{self.username}: Authentication error - {e}")
        return False

    def _user_url(self, suffix=""):
        return f"{API_URL}/user/{self.account_id}{suffix}"

    def fetch_items(self):
        try:
            response = requests.get(f"{API_URL}/items", timeout=5)
            if response.status_code == 200:
                self.items = response.json()
                log(f"{self.username}: Fetched {len(self.items)} items")
                return True
        except requests.RequestException as e:
            log(f"{self.username}: Failed to fetch items - {e}")
        return False

    def browse_items(self):
        if not self.items:
            self.fetch_items()

        if self.items:
            item = random.choice(self.items)
            try:
                response = requests.get(f"{API_URL}/items/{item['id']}", timeout=5)
                if response.status_code == 200:
                    log(f"{self.username}: Browsing {item['name']}")
                    return True
            except requests.RequestException as e:
                log(f"{self.username}: Failed to browse item - {e}")
        return False

    def add_to_cart(self):
        if not self.token:
            return False
        if not self.items:
            self.fetch_items()

        if self.items:
            item = random.choice(self.items)
            try:
                response = requests.post(
                    self._user_url("/items"),
                    json={"item_id": item["id"]},
                    headers=get_headers(self.token),
                    timeout=5
                )
                if response.status_code == 200:
                    self.cart.add(item["id"])
                    log(f"{self.username}: Added {item['name']} to cart")
                    return True
                log(f"{self.username}: Failed to add to cart - {response.status_code}")
            except requests.RequestException as e:
                log(f"{self.username}: Failed to add to cart - {e}")
        return False

    def remove_from_cart(self):
        if not self.token or not self.cart:
            return False

        item_id = random.choice(sorted(self.cart))
        try:
            response = requests.delete(
                self._user_url("/items"),
                json={"item_id": item_id},
                headers=get_headers(self.token),
                timeout=5
            )
            if response.status_code == 200:
                self.cart.discard(item_id)
                log(f"{self.username}: Removed item {item_id} from cart")
                return True
            log(f"{self.username}: Failed to remove from cart - {response.status_code}")
        except requests.RequestException as e:
            log(f"{self.username}: Failed to remove from cart - {e}")
        return False

    def view_cart(self):
        if not self.token:
            return False
        try:
            response = requests.get(self._user_url("/items"), headers=get_headers(self.token), timeout=5)
            if response.status_code == 200:
                cart = response.json()
                log(f"{self.username}: Viewing cart with {len(cart['items'])} items, total {cart['total']}")
                return True
        except requests.RequestException as e:
            log(f"{self.username}: Failed to view cart - {e}")
        return False

    def checkout(self):
        if not self.token or not self.cart:
            return False
        try:
            response = requests.post(
                self._user_url("/checkout"),
                headers=get_headers(self.token),
                timeout=10
            )
            if response.status_code == 200:
                order = response.json()["order"]
                self.cart.clear()
                log(f"{self.username}: Checkout successful - Order {order['id']} ({order['total']})")
                return True
            log(f"{self.username}: Checkout failed - {response.status_code}")
        except requests.RequestException as e:
            log(f"{self.username}: Checkout failed - {e}")
        return False

    def view_orders(self):
        if not self.token:
            return False
        try:
            response = requests.get(self._user_url("/orders"), headers=get_headers(self.token), timeout=5)
            if response.status_code == 200:
                log(f"{self.username}: Viewing {len(response.json())} orders")
                return True
        except requests.RequestException as e:
            log(f"{self.username}: Failed to view orders - {e}")
        return False

    def random_action(self):
        action = random.choices(
            list(ACTION_WEIGHTS.keys()),
            weights=list(ACTION_WEIGHTS.values())
        )[0]

        if action == "browse":
            return self.browse_items()
        elif action == "add_to_cart":
            return self.add_to_cart()
        elif action == "remove_from_cart":
            return self.remove_from_cart()
        elif action == "checkout":
            return self.checkout()
        elif action == "view_cart":
            return self.view_cart()
        elif action == "view_orders":
            return self.view_orders()


def shopper_session(username, duration_seconds, shopper_type="browser"):
    """
    Simulate a shopper session

    shopper_type:
    - "browser": Just browses the catalog (50%)
    - "cart_abandoner": Fills a cart but doesn't check out (30%)
    - "buyer": Completes a purchase (20%)
    """
    shopper = Shopper(username, is_authenticated=(shopper_type != "browser"))
    end_time = time.time() + duration_seconds

    # Everyone browses first
    shopper.fetch_items()
    for _ in range(random.randint(2, 5)):
        shopper.browse_items()
        time.sleep(random.uniform(0.5, 1.5))

    if shopper_type == "browser":
        log(f"{username}: Browser - viewing items only")
        while time.time() < end_time:
            shopper.browse_items()
            time.sleep(random.uniform(0.3, 0.8))
        return

    shopper.authenticate()
    time.sleep(random.uniform(0.2, 0.5))

    for _ in range(random.randint(1, 3)):
        shopper.add_to_cart()
        time.sleep(random.uniform(0.3, 0.8))

    if shopper_type == "cart_abandoner":
        log(f"{username}: Cart abandoner - filling cart without checking out")
        while time.time() < end_time:
            if random.random() < 0.5:
                shopper.browse_items()
            else:
                shopper.view_cart()
            time.sleep(random.uniform(0.3, 0.8))
        return

    log(f"{username}: Buyer - will complete checkout")
    while time.time() < end_time:
        shopper.random_action()
        time.sleep(random.uniform(0.5, 1.5))


def generate_traffic(num_concurrent_users=5, session_duration=60):
    """Generate traffic with multiple concurrent shoppers"""
    log(f"Starting traffic generation with {num_concurrent_users} concurrent shoppers")
    log(f"Session duration: {session_duration} seconds")
    log("Shopper mix: 50% browsers, 30% cart abandoners, 20% buyers")

    threads = []
    session_counter = 0

    try:
        while True:
            while len([t for t in threads if t.is_alive()]) < num_concurrent_users:
                session_counter += 1
                username = f"shopper_{int(time.time())}_{session_counter}"

                rand = random.random()
                if rand < 0.50:
                    shopper_type = "browser"
                elif rand < 0.80:
                    shopper_type = "cart_abandoner"
                else:
                    shopper_type = "buyer"

                thread = threading.Thread(
                    target=shopper_session,
                    args=(username, session_duration, shopper_type)
                )
                thread.start()
                threads.append(thread)

                time.sleep(random.uniform(1, 3))

            # Clean up finished threads
            threads = [t for t in threads if t.is_alive()]
            time.sleep(5)

    except KeyboardInterrupt:
        log("\nStopping traffic generation...")
        log("Waiting for active sessions to complete...")
        for thread in threads:
            thread.join(timeout=10)
        log("Traffic generation stopped")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Generate traffic for the store service")
    parser.add_argument(
        "--users",
        type=int,
        default=5,
        help="Number of concurrent shoppers (default: 5)"
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=60,
        help="Session duration in seconds (default: 60)"
    )
    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8000",
        help="API URL (default: http://localhost:8000)"
    )
    parser.add_argument("--admin-user", type=str, default="root", help="Admin used to seed the catalog")
    parser.add_argument("--admin-pass", type=str, default="", help="Password for --admin-user")

    args = parser.parse_args()
    API_URL = args.url

    log("=" * 60)
    log("Store Traffic Generator")
    log("=" * 60)
    log(f"API URL: {API_URL}")
    log(f"Concurrent Shoppers: {args.users}")
    log(f"Session Duration: {args.duration}s")
    log("=" * 60)

    if args.admin_pass:
        seed_catalog(args.admin_user, args.admin_pass)

    generate_traffic(args.users, args.duration)
