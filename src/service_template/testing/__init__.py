# service_template/testing/
# ├─ command_contract.py   # CommandProcessContract: inherited pytest checks for CommandProcess subclasses
# └─ query_contract.py     # QueryContract: inherited pytest checks for Query subclasses

from .command_contract import CommandProcessContract
from .query_contract import QueryContract

__all__ = ["CommandProcessContract", "QueryContract"]
