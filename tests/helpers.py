"""Builders for JMAP response bodies used across tests."""

import json


def jmap_body(query_args: dict, get_args: dict, *, data_type: str = "Email") -> str:
    """Serialize a successful query+get response."""
    return json.dumps(
        {
            "methodResponses": [
                [f"{data_type}/query", query_args, "0"],
                [f"{data_type}/get", get_args, "1"],
            ],
            "sessionState": "s1",
        }
    )


def error_body(failing_call: str, error_type: str, description: str = "") -> str:
    """Serialize a response where the query ("0") or get ("1") call failed."""
    error = ["error", {"type": error_type, "description": description}, failing_call]
    if failing_call == "0":
        responses = [error, ["error", {"type": "resultReference"}, "1"]]
    else:
        responses = [["Email/query", {"ids": ["m1"], "total": 1}, "0"], error]
    return json.dumps({"methodResponses": responses})


def addr(email: str, name: str | None = None) -> dict:
    return {"name": name, "email": email}


def email(id: str, *, to=(), cc=(), bcc=(), sender=()) -> dict:
    """A raw Email/get record with address lists given as plain strings."""
    return {
        "id": id,
        "to": [addr(a) for a in to] or None,
        "cc": [addr(a) for a in cc] or None,
        "bcc": [addr(a) for a in bcc] or None,
        "from": [addr(a) for a in sender] or None,
    }
