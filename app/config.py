"""
Configuration
=============
Loads environment variables from a .env file using python-dotenv.

Environment Variables:
    TESTPILOT_AGENT_ENDPOINT  — URL of the agent gateway (POST {message, agent_id})
    TESTPILOT_AGENT_ID        — Coordinator agent that runs the analysis
    TESTPILOT_AGENT_TIMEOUT   — Seconds to wait for the agent (default: 120)
    TESTPILOT_DATA_DIR        — Directory holding persisted history (default: .testpilot)
"""
import os
from dotenv import load_dotenv

load_dotenv()

AGENT_ENDPOINT = os.getenv("TESTPILOT_AGENT_ENDPOINT", "http://localhost:8000/api/agent")
AGENT_ID = os.getenv("TESTPILOT_AGENT_ID", "69995b5033bee1a8dbeac2c3")
AGENT_TIMEOUT = int(os.getenv("TESTPILOT_AGENT_TIMEOUT", 120))
DATA_DIR = os.getenv("TESTPILOT_DATA_DIR", ".testpilot")

# Sub-agents orchestrated by the coordinator, shown in the dashboard
AGENTS = [
    {"id": "69995b5033bee1a8dbeac2c3", "name": "Test Analysis Coordinator", "role": "Manager - orchestrates all sub-agents"},
    {"id": "69995b26a63b170a3b816fab", "name": "Bug Detection Agent", "role": "Identifies bugs and severity levels"},
    {"id": "69995b27938bc0103dbe0c07", "name": "Report Generator Agent", "role": "Generates test summaries and CI verdicts"},
]
