from fastapi import Header, HTTPException

def require_business(x_business_id: int | None = Header(None)) -> int:
    """Business the caller acts for; sessions are handled upstream and pass it on."""
    if x_business_id is None:
        raise HTTPException(status_code=401, detail="X-Business-Id header required")
    if x_business_id <= 0:
        raise HTTPException(status_code=400, detail="invalid business id")
    return x_business_id
