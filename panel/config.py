import os
import json
import sys


# Debug flag: default off. Enable via CLI arg "--panel-debug" or env PANEL_DEBUG=1.
DEBUG = "--panel-debug" in sys.argv or os.environ.get("PANEL_DEBUG") == "1"


def dlog(label: str, data):
    if not DEBUG:
        return
    try:
        printable = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False, default=str)
    except Exception:
        printable = str(data)
    print(f"[panel-debug] {label}: {printable}")
