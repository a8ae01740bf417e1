"""Static configuration for the run-input reader."""

from __future__ import annotations

APP_NAME = "tprview"

# Substring every run-input version string carries.
TPR_MAGIC = "VERSION"

MIN_TPR_VERSION = 103
MAX_TPR_VERSION = 137

# Header field `body size` exists for in-memory body layouts from this generation on.
BODY_SIZE_GENERATION = 27

DIM = 3
NR_RBDIHS = 6
NR_CBTDIHS = 6
# Temperature coupling, energy output, acceleration, freeze, user1, user2,
# COM removal, compressed output, orientation fit, QM.
NR_GROUP_TYPES = 10

# Smallest buffer that can hold the magic string header and the precision sentinel.
MIN_HEADER_BYTES = 12

MAX_ATOMIC_NUMBER = 118

DEFAULT_TABLE_ROWS = 50
