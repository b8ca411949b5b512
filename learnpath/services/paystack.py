"""
Paystack client
===============

Thin wrapper over the two Paystack transaction calls the payment flow needs:

- ``POST /transaction/initialize`` - start a checkout, returns the hosted
  authorization URL the browser is redirected to.
- ``GET /transaction/verify/<reference>`` - look up the outcome of a
  checkout.

Amounts are passed in major units and converted to minor units (kobo/cents)
here. Every request carries a bounded timeout; network failures, non-2xx
responses and bodies with ``status: false`` are raised as ``GatewayError``.

Webhook payloads are signed with HMAC-SHA512 of the raw body keyed by the
secret key and sent in the ``x-paystack-signature`` header.
"""

import hashlib
import hmac
import json

import requests

from learnpath.errors import GatewayError
from learnpath.helpers.currency import to_minor_units

SIGNATURE_HEADER = "x-paystack-signature"


def compute_signature(secret_key, raw_body):
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    return hmac.new(secret_key.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(secret_key, raw_body, signature):
    if not signature:
        return False
    expected = compute_signature(secret_key, raw_body)
    return hmac.compare_digest(expected, signature.strip().lower())


class PaystackClient:
    def __init__(self, secret_key, base_url="https://api.paystack.co", timeout=10):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {secret_key}",
            "Content-Type": "application/json",
        })

    def initialize(self, email, amount, currency, reference, metadata, callback_url):
        payload = {
            "email": email,
            "amount": to_minor_units(amount),
            "currency": currency,
            "reference": reference,
            "metadata": metadata,
            "callback_url": callback_url,
        }
        data = self._request("POST", "/transaction/initialize", json=payload)
        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": data.get("reference", reference),
        }

    def verify(self, reference):
        data = self._request("GET", f"/transaction/verify/{reference}")
        return {
            "status": data.get("status"),
            "reference": data.get("reference", reference),
            "amount": data.get("amount"),
            "currency": data.get("currency"),
            "metadata": normalize_metadata(data.get("metadata")),
        }

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise GatewayError("Payment provider timed out")
        except requests.exceptions.RequestException as e:
            raise GatewayError(f"Could not reach payment provider: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.ok or not body.get("status"):
            message = body.get("message") or response.reason or "unknown error"
            raise GatewayError(f"Payment provider error ({response.status_code}): {message}")

        return body.get("data") or {}


def normalize_metadata(metadata):
    # Paystack echoes metadata back as an object, a JSON string, or "" when unset
    if isinstance(metadata, dict):
        return metadata
    if isinstance(metadata, str) and metadata:
        try:
            parsed = json.loads(metadata)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}
