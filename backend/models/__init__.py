from models.gen import LiveTable, LiveColumn, ColumnSpec  # noqa: F401
from models.gen import GenTableOut, GenColumnOut, GenTableDetail  # noqa: F401
from models.gen import ImportResponse, SyncResponse  # noqa: F401
