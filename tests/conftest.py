import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("SHOPIFY_DOMAIN", "example.myshopify.com")
os.environ.setdefault("ADMIN_TOKEN", "test_admin_token")
os.environ.setdefault("SWATCHES_IMAGE_STRATEGY", "lookup")
