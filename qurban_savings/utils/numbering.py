"""Human-facing reference numbers for savings accounts and deposits"""

import secrets
import string

_ALPHANUMERIC = string.ascii_uppercase + string.digits


def generate_savings_number(year: int) -> str:
    """SAV-QBN-2026-7K2M9QX4A"""
    suffix = "".join(secrets.choice(_ALPHANUMERIC) for _ in range(9))
    return f"SAV-QBN-{year}-{suffix}"


def generate_deposit_number(year: int) -> str:
    """PAY-SAV-QBN-2026-048213"""
    suffix = "".join(secrets.choice(string.digits) for _ in range(6))
    return f"PAY-SAV-QBN-{year}-{suffix}"


def resolve_proof_url(proof_ref: str | None, media_base_url: str) -> str | None:
    """Absolute URL for a stored payment-proof reference"""
    if not proof_ref:
        return None
    if proof_ref.startswith("http://") or proof_ref.startswith("https://"):
        return proof_ref
    return f"{media_base_url.rstrip('/')}/{proof_ref.lstrip('/')}"
