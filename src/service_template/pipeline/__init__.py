# service_template/pipeline/
# ├─ command.py   # CommandProcess / AsyncCommandProcess: gated pre_process -> process -> post_process
# └─ query.py     # Query / AsyncQuery: pre_process -> process -> post_process, always inline

from .command import AsyncCommandProcess, CommandProcess
from .query import AsyncQuery, Query

__all__ = ["CommandProcess", "AsyncCommandProcess", "Query", "AsyncQuery"]
