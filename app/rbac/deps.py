from fastapi import Depends

from app.auth.deps import Principal, get_principal
from app.errors import Forbidden
from app.rbac.perms import PERMS

def require_perm(action: str):
    allowed = PERMS.get(action)
    if allowed is None:
        raise RuntimeError(f"unknown permission action: {action}")

    def _checker(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in allowed:
            raise Forbidden()
        return principal

    return _checker
