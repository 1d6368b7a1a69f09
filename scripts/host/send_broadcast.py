"""
Sign and POST one broadcast to a player, the way the GAIM host does.

  python scripts/host/send_broadcast.py --player-url http://127.0.0.1:3000 --type Ping
  python scripts/host/send_broadcast.py --player-url http://127.0.0.1:3000 --type Query --content hand.json

The host key is read from GAIM_HOST_MNEMONIC (a fresh one is generated if unset,
which the player will reject unless it trusts that address).
"""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import argparse
import json
import os

import bittensor as bt
import requests

from gaim_player.protocol import BroadcastType, build_signed_envelope


def _make_keypair() -> bt.Keypair:
    mnemonic = (os.getenv("GAIM_HOST_MNEMONIC") or "").strip()
    if not mnemonic:
        mnemonic = bt.Keypair.generate_mnemonic()
    return bt.Keypair.create_from_mnemonic(mnemonic)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Send a signed GAIM broadcast to a player.")
    parser.add_argument("--player-url", required=True)
    parser.add_argument("--type", choices=[t.value for t in BroadcastType], default=BroadcastType.PING.value)
    parser.add_argument("--content", type=Path, help="JSON file with the Query content.")
    parser.add_argument("--timeout", type=float, default=30.0)
    args = parser.parse_args(argv)

    content = json.loads(args.content.read_text(encoding="utf-8")) if args.content else None
    kp = _make_keypair()
    bt.logging.info(f"Signing as host {kp.ss58_address}")

    envelope = build_signed_envelope(BroadcastType(args.type), content, keypair=kp)
    r = requests.post(args.player_url.rstrip("/") + "/", json=envelope, timeout=args.timeout)
    bt.logging.info(f"{r.status_code} {r.text}")
    return 0 if r.ok else 1


if __name__ == "__main__":
    sys.exit(main())
