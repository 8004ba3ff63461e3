"""Runtime settings, read from the environment."""

import os

PORT = os.environ.get("LUABLOCKS_PORT", "")
BAUD = int(os.environ.get("LUABLOCKS_BAUD", "115200"))
LANG = os.environ.get("LUABLOCKS_LANG", "en")
LOG_LEVEL = os.environ.get("LUABLOCKS_LOG_LEVEL", "WARNING")

# Program identity the blocks and editor panes start with
DEFAULT_LOCATION = "/sd"
DEFAULT_PROGRAM = "autorun.lua"

# Dialogs
INFO_DISMISS_MS = 1500

# Serial
RESPONSE_LINES = 10  # lines read before giving up on a reply
BOOT_SETTLE_S = 0.3
FIRMWARE_CHUNK = 256
