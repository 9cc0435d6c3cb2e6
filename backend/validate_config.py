#!/usr/bin/env python3
"""
Configuration Validation Script
Validates that all required environment variables are set correctly
"""
import json
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

REQUIRED_CREDENTIAL_KEYS = ("client_email", "private_key", "token_uri")


def validate_config():
    """Validate configuration"""
    print("Validating configuration...\n")

    errors = []
    warnings = []

    ai_provider = os.getenv('AI_PROVIDER', 'openai')
    print("AI_PROVIDER:", ai_provider)

    if ai_provider == 'openai':
        api_key = os.getenv('OPENAI_API_KEY')
        if not api_key or api_key == 'your-openai-api-key':
            errors.append("OPENAI_API_KEY not set")
        else:
            print("OPENAI_API_KEY is set")
    elif ai_provider == 'azure':
        for name in ('AZURE_OPENAI_ENDPOINT', 'AZURE_OPENAI_KEY'):
            if not os.getenv(name):
                errors.append(f"{name} not set")
            else:
                print(f"{name} is set")
    else:
        errors.append(f"Unknown AI_PROVIDER: {ai_provider}")

    # Check Google service account
    inline = os.getenv('GOOGLE_CREDENTIALS_JSON')
    credentials_file = os.getenv('GOOGLE_CREDENTIALS_FILE', './google-credentials.json')
    credentials = None
    if inline:
        try:
            credentials = json.loads(inline)
            print("GOOGLE_CREDENTIALS_JSON is valid JSON")
        except json.JSONDecodeError as e:
            errors.append(f"GOOGLE_CREDENTIALS_JSON is not valid JSON: {e}")
    elif not Path(credentials_file).exists():
        errors.append(f"Credentials file not found: {credentials_file}")
    else:
        try:
            credentials = json.loads(Path(credentials_file).read_text(encoding='utf-8'))
            print(f"Credentials file is readable: {credentials_file}")
        except (OSError, json.JSONDecodeError) as e:
            errors.append(f"Credentials file unreadable: {e}")

    if credentials is not None:
        missing = [key for key in REQUIRED_CREDENTIAL_KEYS if not credentials.get(key)]
        if missing:
            errors.append(f"Service account credentials missing: {', '.join(missing)}")
        else:
            print(f"Service account: {credentials['client_email']}")

    port = os.getenv('PORT', '8000')
    if not port.isdigit():
        errors.append(f"PORT must be a number. Got: {port}")
    else:
        print(f"PORT: {port}")

    projection = os.getenv('SHEET_PROJECTION', 'rows')
    if projection not in ('rows', 'grid', 'metrics'):
        errors.append(f"SHEET_PROJECTION must be rows, grid or metrics. Got: {projection}")
    elif projection == 'metrics' and not any(
        os.getenv(name) for name in ('METRICS_DATE_HEADER', 'METRICS_PRIMARY_HEADER', 'METRICS_SECONDARY_HEADER')
    ):
        warnings.append("Metrics columns resolved by position only (set METRICS_*_HEADER to match by name)")

    print("\n" + "="*60)
    if warnings:
        print("\nWARNINGS:")
        for w in warnings:
            print(" ", w)
    if errors:
        print("\nERRORS:")
        for e in errors:
            print(" ", e)
        print("\nValidation failed. Fix errors above.\n")
        return False
    print("\nValidation passed.\n")
    return True

if __name__ == "__main__":
    success = validate_config()
    sys.exit(0 if success else 1)
