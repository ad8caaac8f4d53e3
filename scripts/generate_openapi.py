"""
Dump the marketplace OpenAPI schema.

The output feeds the frontend's TypeScript type generation:
    python scripts/generate_openapi.py > openapi.json
"""

import json
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.marketplace_service.app.main import app


def build_schema() -> dict:
    schema = app.openapi()
    schema["info"]["title"] = "VendorVault API"
    return schema


if __name__ == "__main__":
    print(json.dumps(build_schema(), indent=2))
