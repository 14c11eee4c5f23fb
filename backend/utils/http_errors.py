from fastapi import HTTPException

from services.errors import StorefrontError

# Translate a domain error into the HTTP answer the storefront expects
def http_error(exc: StorefrontError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
