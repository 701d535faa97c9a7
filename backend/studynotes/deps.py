from fastapi import Header, HTTPException


async def get_owner_id(x_user_id: str | None = Header(default=None)) -> str:
    """Owner identity, as verified upstream by the auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user identity")
    return x_user_id.strip()
