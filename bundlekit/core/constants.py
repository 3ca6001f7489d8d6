"""
Constants and default values for bundlekit
"""

import os

# Output naming
OUTPUT_FILENAME = "[name].js"
CHUNK_FILENAME = "[name].js"
ENTRY_SUFFIX = ".js"

# Vendored dependency directories never handed to a loader
VENDOR_EXCLUDE_PATTERN = r"(node_modules|bower_components)"

# Environment variable defaults
DEFAULT_DEV_PORT = int(os.getenv("BUNDLEKIT_DEV_PORT", "9001"))
DEFAULT_DEV_HOST = os.getenv("BUNDLEKIT_DEV_HOST", "localhost")
DEFAULT_NODE_COMMAND = os.getenv("BUNDLEKIT_NODE_CMD", "node")
DEFAULT_BUILD_TIMEOUT = int(os.getenv("BUNDLEKIT_BUILD_TIMEOUT", "300"))

# Development server settings
WATCH_AGGREGATE_TIMEOUT_MS = 300
WATCH_POLL_MS = 1000
CUSTOM_RESPONSE_HEADERS = {"X-Custom-Header": "yes"}
HISTORY_FALLBACK_DOCUMENT = "index.html"

# Build lifecycle events re-emitted by the mutator
BUILD_START = "build.start"
BUILD_DONE = "build.done"
BUILD_ERROR = "build.error"
BUILD_EVENTS = (BUILD_START, BUILD_DONE, BUILD_ERROR)

# Compiler event bus
COMPILER_COMPILE = "compile"
COMPILER_DONE = "done"
COMPILER_FAILED = "failed"

# Logging format
LOG_FORMAT = "[bundlekit] %(levelname)s: %(message)s"
