import os

from dotenv import load_dotenv


# Load the project .env so optional live settings (GITHUB_TOKEN, FOUNDRY_LOCAL_*) are visible.
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
ENV_PATH = os.path.join(PROJECT_ROOT, ".env")

# Missing file is fine.
load_dotenv(dotenv_path=ENV_PATH, override=False)
