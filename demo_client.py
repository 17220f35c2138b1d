#!/usr/bin/env python3
"""
Demo client for the Hermetic FHE API

Runs three scenarios against a running service:
- a boolean circuit: (A AND B) OR (C AND NOT D)
- chained integer arithmetic: (A - B) * C, also decrypted from an export
- A + B under every parameter set

Usage:
    python demo_client.py --url http://localhost:5000
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

import requests

PARAMETER_SETS = ["DEFAULT", "FAST", "SECURE"]


class FheClientError(Exception):
    """The service answered with an error body."""

    def __init__(self, status_code: int, body: Dict[str, Any]):
        self.status_code = status_code
        self.error = body.get("error", "UNKNOWN")
        self.body = body
        super().__init__(f"{status_code} {self.error}: {body.get('message', '')}")


class FheClient:
    """Thin wrapper over the /api endpoints."""

    def __init__(self, base_url: str, session=None, timeout: float = 300.0):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.post(
            f"{self.base_url}/api{path}", json=payload, timeout=self.timeout
        )
        body = response.json()
        if response.status_code >= 400:
            raise FheClientError(response.status_code, body)
        return body

    def health(self) -> Dict[str, Any]:
        response = self.session.get(f"{self.base_url}/api/health", timeout=self.timeout)
        return response.json()

    def generate_keys(self, parameter_set: str = "DEFAULT"):
        body = self._post("/keys", {"parameter_set": parameter_set})
        return body["client_key_id"], body["server_key_id"]

    def encrypt_boolean(self, client_key_id: str, value: bool) -> str:
        body = self._post("/encrypt/boolean", {"client_key_id": client_key_id, "value": value})
        return body["encrypted_data_id"]

    def encrypt_integer(self, client_key_id: str, value: int, num_bits: int) -> str:
        body = self._post(
            "/encrypt/integer",
            {"client_key_id": client_key_id, "value": value, "num_bits": num_bits},
        )
        return body["encrypted_data_id"]

    def evaluate(self, server_key_id: str, operation: str, operand_ids: List[str]) -> str:
        body = self._post(
            "/evaluate",
            {"server_key_id": server_key_id, "operation": operation, "operand_ids": operand_ids},
        )
        return body["result_id"]

    def export(self, client_key_id: str, encrypted_data_id: str) -> str:
        body = self._post(
            "/export", {"client_key_id": client_key_id, "encrypted_data_id": encrypted_data_id}
        )
        return body["serialized_data"]

    def decrypt_boolean(
        self,
        client_key_id: str,
        encrypted_data_id: Optional[str] = None,
        serialized_data: Optional[str] = None,
    ) -> bool:
        return self._decrypt("/decrypt/boolean", client_key_id, encrypted_data_id, serialized_data)

    def decrypt_integer(
        self,
        client_key_id: str,
        encrypted_data_id: Optional[str] = None,
        serialized_data: Optional[str] = None,
    ) -> int:
        return self._decrypt("/decrypt/integer", client_key_id, encrypted_data_id, serialized_data)

    def _decrypt(self, path, client_key_id, encrypted_data_id, serialized_data):
        payload = {"client_key_id": client_key_id}
        if encrypted_data_id is not None:
            payload["encrypted_data_id"] = encrypted_data_id
        if serialized_data is not None:
            payload["serialized_data"] = serialized_data
        return self._post(path, payload)["value"]


def boolean_circuit_demo(client: FheClient, parameter_set: str = "DEFAULT") -> bool:
    """Evaluate (A AND B) OR (C AND NOT D) on A=1, B=0, C=1, D=0."""
    print("🔣 Boolean circuit: (A AND B) OR (C AND NOT D)")
    client_id, server_id = client.generate_keys(parameter_set)

    inputs = {"A": True, "B": False, "C": True, "D": False}
    ids = {name: client.encrypt_boolean(client_id, value) for name, value in inputs.items()}
    print(f"   Encrypted inputs: {inputs}")

    not_d = client.evaluate(server_id, "NOT", [ids["D"]])
    a_and_b = client.evaluate(server_id, "AND", [ids["A"], ids["B"]])
    c_and_not_d = client.evaluate(server_id, "AND", [ids["C"], not_d])
    result_id = client.evaluate(server_id, "OR", [a_and_b, c_and_not_d])

    result = client.decrypt_boolean(client_id, result_id)
    expected = (inputs["A"] and inputs["B"]) or (inputs["C"] and not inputs["D"])
    print(f"   Result: {result} (expected {expected})")
    return result == expected


def integer_arithmetic_demo(
    client: FheClient, parameter_set: str = "DEFAULT", num_bits: int = 8
) -> bool:
    """Evaluate (A - B) * C on A=15, B=7, C=3 and decrypt it by handle and from an export."""
    print("🧮 Integer arithmetic: (A - B) * C")
    client_id, server_id = client.generate_keys(parameter_set)

    a, b, c = 15, 7, 3
    a_id = client.encrypt_integer(client_id, a, num_bits)
    b_id = client.encrypt_integer(client_id, b, num_bits)
    c_id = client.encrypt_integer(client_id, c, num_bits)
    print(f"   Encrypted A={a}, B={b}, C={c} as {num_bits}-bit integers")

    difference = client.evaluate(server_id, "SUBTRACT", [a_id, b_id])
    product = client.evaluate(server_id, "MULTIPLY", [difference, c_id])

    by_handle = client.decrypt_integer(client_id, product)
    inline = client.decrypt_integer(client_id, serialized_data=client.export(client_id, product))
    expected = (a - b) * c
    print(f"   Result: {by_handle} by handle, {inline} from export (expected {expected})")
    return by_handle == inline == expected


def parameter_sets_demo(client: FheClient, parameter_sets: Optional[List[str]] = None) -> bool:
    """Run A + B under each parameter set."""
    print("⚙️  Parameter sets: A + B")
    a, b = 42, 27
    all_correct = True
    for parameter_set in parameter_sets or PARAMETER_SETS:
        client_id, server_id = client.generate_keys(parameter_set)
        total = client.evaluate(
            server_id,
            "ADD",
            [client.encrypt_integer(client_id, a, 8), client.encrypt_integer(client_id, b, 8)],
        )
        result = client.decrypt_integer(client_id, total)
        correct = result == a + b
        all_correct = all_correct and correct
        print(f"   {'✅' if correct else '❌'} {parameter_set}: {a} + {b} = {result}")
    return all_correct


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Hermetic FHE demo client")
    parser.add_argument("--url", default="http://localhost:5000", help="service base URL")
    parser.add_argument(
        "--parameter-set",
        default="DEFAULT",
        choices=PARAMETER_SETS,
        help="parameter set for the circuit and arithmetic demos",
    )
    args = parser.parse_args(argv)

    print("🔐 Hermetic FHE demo client")
    print("=" * 50)

    client = FheClient(args.url)
    try:
        health = client.health()
        print(f"✅ Connected to {args.url} (backend: {health['backend']})")

        results = [
            boolean_circuit_demo(client, args.parameter_set),
            integer_arithmetic_demo(client, args.parameter_set),
            parameter_sets_demo(client),
        ]
    except requests.RequestException as e:
        print(f"❌ Could not reach the service: {e}")
        return 1
    except FheClientError as e:
        print(f"❌ Service error: {e}")
        return 1

    if all(results):
        print("\n🎉 All demos produced the expected results")
        return 0
    print("\n❌ Some demos produced unexpected results")
    return 1


if __name__ == "__main__":
    sys.exit(main())
