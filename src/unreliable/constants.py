from __future__ import annotations

# Largest datagram buffered, sent or received by one stream operation.
MAX_PACKET_SIZE = 8192

DEFAULT_TIMEOUT_MS = 0
DEFAULT_LISTEN_HOST = "0.0.0.0"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
