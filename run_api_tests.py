"""Manual smoke run against a local server (uvicorn src.main:app --port 8000).

Mints access tokens locally with the shared JWT_SECRET, so run it with the
same environment as the server.
"""
import urllib.request
import urllib.error
import json

from config.settings import settings
from src.cdp_gateway.auth.jwt_handler import create_access_token

BASE = "http://localhost:8000/api/v1"
WAD = 10**18
WETH = "0xweth"

def request(method, path, body=None, token=None):
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        f"{BASE}{path}",
        data=data,
        method=method,
        headers={"Content-Type": "application/json"}
    )
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def post(path, body=None, token=None):
    return request("POST", path, body, token)

def put(path, body, token=None):
    return request("PUT", path, body, token)

def get(path, token=None):
    return request("GET", path, token=token)

def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)

def label(name):
    print(f"\n--- {name} ---")

def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))

ADMIN = create_access_token(settings.ADMIN_ADDRESS)
ALICE = create_access_token("0xalice")
BOB = create_access_token("0xbob")

# ── S1 Setup ───────────────────────────────────────────────────
section("S1 — FAUCET AND PROTOCOL")

label("S1-1: Faucet 10 WETH to alice")
out(post("/admin/faucet", {"token": WETH, "to": "0xalice", "amount": 10 * WAD}, token=ADMIN))

label("S1-2: Faucet from non-admin is rejected")
out(post("/admin/faucet", {"token": WETH, "to": "0xalice", "amount": WAD}, token=ALICE))

label("S1-3: Protocol view")
out(get("/protocol"))

# ── S2 Positions ───────────────────────────────────────────────
section("S2 — POSITIONS")

label("S2-1: Deposit 10 WETH and mint 8000 SC (alice)")
out(post("/positions/deposit-and-mint",
         {"token": WETH, "amount_collateral": 10 * WAD, "amount_to_mint": 8000 * WAD},
         token=ALICE))

label("S2-2: Mint beyond the health factor (alice)")
out(post("/positions/mint", {"amount": 5000 * WAD}, token=ALICE))

label("S2-3: Burn more than minted (alice)")
out(post("/positions/burn", {"amount": 9000 * WAD}, token=ALICE))

label("S2-4: Position and health factor (alice)")
out(get("/positions/me", token=ALICE))
out(get("/positions/0xalice/health-factor", token=ALICE))

label("S2-5: Deposit unknown token")
out(post("/positions/deposit", {"token": "0xdoge", "amount": WAD}, token=ALICE))

label("S2-6: No token")
out(get("/positions/me"))

# ── S3 Liquidation ─────────────────────────────────────────────
section("S3 — LIQUIDATION")

label("S3-1: Liquidate a healthy position")
out(post("/liquidations", {"token": WETH, "user": "0xalice", "debt_to_cover": 1000 * WAD},
         token=BOB))

label("S3-2: WETH drops to 1500 USD")
out(put("/admin/feeds/WETH/USD/answer", {"answer": 1500 * 10**8}, token=ADMIN))

label("S3-3: Positions at risk")
out(get("/liquidations/positions", token=BOB))

label("S3-4: Liquidate 4000 SC of alice's debt")
out(post("/liquidations", {"token": WETH, "user": "0xalice", "debt_to_cover": 4000 * WAD},
         token=BOB))

label("S3-5: Keeper poke of the WETH feed")
out(post("/protocol/feeds/WETH/USD/poke", token=BOB))

# ── S4 Auctions ────────────────────────────────────────────────
section("S4 — AUCTIONS")

label("S4-1: List auctions")
out(get("/auctions"))

label("S4-2: Auction 0")
out(get("/auctions/0"))

label("S4-3: Bid from an account without stablecoin (bob)")
out(post("/auctions/0/bids", {"amount": 3500 * WAD}, token=BOB))

label("S4-4: Bid 4000 SC (alice)")
out(post("/auctions/0/bids", {"amount": 4000 * WAD}, token=ALICE))

label("S4-5: Finalize a fully bid auction")
out(post("/auctions/0/finalize", token=BOB))

label("S4-6: Finalize again")
out(post("/auctions/0/finalize", token=BOB))

label("S4-7: Journal")
out(get("/admin/events?limit=10", token=ADMIN))

print("\n\n=== SMOKE RUN COMPLETE ===\n")
