"""Configuration for Python Quest."""

import os

# Session timing (seconds)
RUN_LATENCY_SECONDS = float(os.getenv("QUEST_RUN_LATENCY", "1.0"))
COMPLETION_DELAY_SECONDS = float(os.getenv("QUEST_COMPLETION_DELAY", "1.5"))

# Progression
XP_PER_CHALLENGE = int(os.getenv("QUEST_XP_PER_CHALLENGE", "50"))
STARTING_EXPERIENCE = int(os.getenv("QUEST_STARTING_XP", "50"))
XP_PER_LEVEL = int(os.getenv("QUEST_XP_PER_LEVEL", "100"))

# Evaluation: "simulated" (pattern rules) or "sandbox" (real execution)
EVALUATOR_MODE = os.getenv("QUEST_EVALUATOR", "simulated")

# Sandbox limits
SANDBOX_TIMEOUT_SECONDS = int(os.getenv("SANDBOX_TIMEOUT", "5"))
SANDBOX_MEMORY_MB = int(os.getenv("SANDBOX_MEMORY_MB", "256"))
SANDBOX_MAX_OUTPUT_BYTES = int(os.getenv("SANDBOX_MAX_OUTPUT", str(64 * 1024)))  # 64KB

# Events kept for polling clients
EVENT_BUFFER_SIZE = int(os.getenv("QUEST_EVENT_BUFFER", "50"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# API
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
