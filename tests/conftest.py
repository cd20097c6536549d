import os, sys
from pathlib import Path

# Add src/ to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Ensure required environment variables for Core()
os.environ.setdefault("OPENAI_API_KEY", "test-openai")
os.environ.setdefault("VISION_MODEL_ID", "vision-model")
