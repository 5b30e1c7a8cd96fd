"""Postal code (CEP) syntax checks and request body parsing."""
from __future__ import annotations

import json
import re
from typing import Union

from cepweather.core.abstractions import PostalCodeRequest

# ASCII digits only; ``\d`` would also accept other Unicode decimal digits.
CEP_PATTERN = re.compile(r"[0-9]{8}")


class InvalidPostalCode(ValueError):
    """Raised when a request body does not carry a syntactically valid CEP."""


def is_valid_cep(code: object) -> bool:
    """Return ``True`` iff ``code`` is a string of exactly eight decimal digits.

    No normalization happens: separators, whitespace or signs make the code
    invalid.
    """
    if not isinstance(code, str):
        return False
    return CEP_PATTERN.fullmatch(code) is not None


def parse_postal_code_request(body: Union[bytes, str]) -> PostalCodeRequest:
    """Decode a ``{"cep": "..."}`` JSON body and validate the code."""
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise InvalidPostalCode("body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise InvalidPostalCode("body must be a JSON object")
    code = payload.get("cep")
    if not isinstance(code, str):
        raise InvalidPostalCode("cep must be a string")
    if not is_valid_cep(code):
        raise InvalidPostalCode(f"invalid zipcode format: {code!r}")
    return PostalCodeRequest(cep=code)


__all__ = ["CEP_PATTERN", "InvalidPostalCode", "is_valid_cep", "parse_postal_code_request"]
