from app.models.enums import Role

# coarse gates for routes outside the todo mutation policy
PERMS: dict[str, set[Role]] = {
    "users:read": {Role.admin},
    "users:set_role": {Role.admin},
}
