#!/usr/bin/env python3
"""
LAS Python SDK - Request Signing Example

This example shows how requests to Lucidtech AI Services are signed with
AWS Signature Version 4, and how signing and API errors surface.
"""

import sys
import os
from datetime import datetime, timezone

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from las_sdk import (
    ApiClient,
    ClientError,
    Credentials,
    ErrorKind,
    SigV4Signer,
    sign_request,
)

EXAMPLE_CREDENTIALS = Credentials(
    access_key_id="AKIDEXAMPLE",
    secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
    api_key="example-api-key"
)


def basic_signing_example():
    """Sign one request and show the intermediate strings"""
    print("=== Basic Request Signing Example ===")

    timestamp = datetime(2019, 3, 14, 12, 30, 45, tzinfo=timezone.utc)
    result = sign_request(
        EXAMPLE_CREDENTIALS,
        "POST",
        "https://api.lucidtech.ai/v1/documents",
        '{"consentId": "abc"}',
        timestamp
    )

    print("1. Canonical request:")
    print(result.canonical_request)
    print("\n2. String to sign:")
    print(result.string_to_sign)
    print("\n3. Headers:")
    for name, value in result.headers.items():
        print(f"   {name}: {value}")


def error_handling_example():
    """Show the errors raised before anything is sent"""
    print("\n\n=== Error Handling Example ===")

    signer = SigV4Signer(EXAMPLE_CREDENTIALS)
    try:
        signer.sign("GET", "https://api.lucidtech.ai/v1/documents?limit=10")
    except ClientError as e:
        assert e.kind is ErrorKind.SIGNING_UNSUPPORTED
        print(f"   Query string: {e}")

    try:
        SigV4Signer(Credentials("AKIDEXAMPLE", "", "example-api-key")).sign(
            "GET", "https://api.lucidtech.ai/v1/documents"
        )
    except ClientError as e:
        print(f"   Empty secret: {e}")


def prediction_example(document_path: str, model_name: str):
    """Run a prediction with credentials from the environment or ~/.lucidtech/credentials.cfg"""
    print("\n\n=== Prediction Example ===")

    with ApiClient() as client:
        prediction = client.predict(document_path, model_name)
    print(prediction.to_json(indent=2))


def main():
    """Run all examples"""
    print("LAS Python SDK - Request Signing Examples")
    print("=" * 50)

    basic_signing_example()
    error_handling_example()

    if len(sys.argv) == 3:
        try:
            prediction_example(sys.argv[1], sys.argv[2])
        except ClientError as e:
            print(f"\nPrediction failed: {e}")
            sys.exit(1)
    else:
        print("\nPass a document path and model name to run a prediction against the API.")


if __name__ == "__main__":
    main()
