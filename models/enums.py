from enum import Enum

# ------------------- ENUMS ------------------------------------------ #
class UserRole(str, Enum):
    user = "user"
    admin = "admin"
