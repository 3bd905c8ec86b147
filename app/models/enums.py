from enum import Enum

# one canonical casing on the wire and in storage
class Role(str, Enum):
    user = "user"
    manager = "manager"
    admin = "admin"
