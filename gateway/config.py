"""Configuration settings for the GridVault gateway."""

import os
from common.constants import CHUNK_SIZE_BYTES, DEFAULT_CHUNK_STORAGE_PATH, DEFAULT_DATABASE_PATH


DATABASE_PATH = os.environ.get("GRIDVAULT_DATABASE_PATH", DEFAULT_DATABASE_PATH)

DATABASE_BUSY_TIMEOUT_SECONDS = float(os.environ.get("GRIDVAULT_DATABASE_TIMEOUT", "30"))

CHUNK_STORAGE_PATH = os.environ.get("GRIDVAULT_CHUNK_PATH", DEFAULT_CHUNK_STORAGE_PATH)

CHUNK_BACKEND = os.environ.get("GRIDVAULT_CHUNK_BACKEND", "local").lower()

CHUNK_SIZE = CHUNK_SIZE_BYTES

GATEWAY_HOST = os.environ.get("HOST", "0.0.0.0")

GATEWAY_PORT = int(os.environ.get("PORT", "5000"))

SWEEP_INTERVAL_SECONDS = int(os.environ.get("GRIDVAULT_SWEEP_INTERVAL", "3600"))

RESERVATION_TTL_SECONDS = int(os.environ.get("GRIDVAULT_RESERVATION_TTL", "3600"))
