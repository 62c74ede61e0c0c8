import uuid


def generate_id(prefix: str) -> str:
    """Public identifier such as ``content_3f2a9c...``; unique without a database round trip."""
    return f"{prefix}_{uuid.uuid4().hex}"
