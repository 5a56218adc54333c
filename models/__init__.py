import os
import importlib

# Register every table module on Base.metadata so create_all() sees it
package_dir = os.path.dirname(__file__)
for filename in sorted(os.listdir(package_dir)):
    if filename.endswith(".py") and filename not in {"__init__.py", "base.py", "enums.py"}:
        importlib.import_module(f"models.{filename[:-3]}")

from .base import Base
from .user import User
