# membertracker_client/cli/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

# This cli/config.py file is at <project>/membertracker_client/cli/config.py
# Three .parent calls navigate to the project root directory
project_root = Path(__file__).parent.parent.parent.resolve()

# Load environment variables from .env file, overriding system environment variables
load_dotenv(dotenv_path=project_root / '.env', override=True)

# Backend override for CLI runs; falls back to API_BASE_URL via Settings
MT_CLI_API_BASE_URL = os.getenv("MT_CLI_API_BASE_URL")

# Default credentials for commands that sign in before acting
MT_CLI_EMAIL = os.getenv("MT_CLI_EMAIL")
MT_CLI_PASSWORD = os.getenv("MT_CLI_PASSWORD")
