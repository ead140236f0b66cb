"""
This module contains the default configuration settings for Balaur.
It defines file names, pool defaults, supervisor timings and process titles.
Values read from the environment may be placed in a .env file next to the
application being daemonized.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Version ---
VERSION = "1.0.0"

#* --- Config File Discovery ---
CONFIG_FILE_NAME = os.getenv("BALAUR_CONFIG_FILE", "balaur.config.json")
BALAUR_ENV = os.getenv("BALAUR_ENV", "production").lower()
IS_DEVELOPMENT = BALAUR_ENV == "development"

#* --- Default Values for the Configuration Record ---
DEFAULT_MAIN = "app:main"
DEFAULT_ENTRY_ATTRIBUTE = "main"
DEFAULT_WORKERS = 1 if IS_DEVELOPMENT else (os.cpu_count() or 1)
DEFAULT_PIDFILE_PATH = "pidfile.pid"
DEFAULT_STDOUT_PATH = "out.log"
DEFAULT_STDERR_PATH = "err.log"

#* --- Supervisor Settings ---
MAX_RESPAWN_ATTEMPTS = 10
WORKER_POLL_INTERVAL = float(os.getenv("BALAUR_POLL_INTERVAL", "0.2"))  # seconds
DAEMON_HANDOFF_TIMEOUT = float(os.getenv("BALAUR_HANDOFF_TIMEOUT", "5"))  # seconds
DAEMON_HANDOFF_INTERVAL = 0.05  # seconds between pidfile re-reads

#* --- Daemon Launch ---
# Marks the environment of a process started by the launcher so it can
# recognise itself as the new master.
DAEMON_MARKER_ENV = "BALAUR_DAEMON"
# Interpreter flags used for 'start --inspect'.
INSPECT_INTERPRETER_FLAGS = ["-X", "dev", "-X", "faulthandler"]

#* --- Process Titles ---
MASTER_PROCESS_TITLE = "Balaur - Master"
WORKER_PROCESS_TITLE = "Balaur - Worker"
